from showrunner.models import StoreState
from showrunner.operations._registry import register
from showrunner.operations._state import patch_tour
from showrunner.utils import replace_by_id, shallow_merge


@register()
def award_proposal(state: StoreState, tour_id: str, rfp_id: str) -> StoreState:
    """
    Marks an RFP as Awarded.

    Proposals and the tour's other RFPs are left exactly as they were; competing
    proposals are not rejected.
    """
    return patch_tour(
        state,
        tour_id,
        lambda t: {
            "rfps": replace_by_id(
                t.rfps or [], rfp_id, lambda rfp: shallow_merge(rfp, {"status": "Awarded"})
            )
        },
    )
