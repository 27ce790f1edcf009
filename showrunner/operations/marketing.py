"""Website builder and email campaign operations."""

from showrunner.errors import ValidationError
from showrunner.models import (
    WEBSITE_SECTION_TYPES,
    CampaignStats,
    EmailCampaign,
    EmailContent,
    SectionContent,
    StoreState,
    WebsiteSection,
)
from showrunner.operations._registry import register
from showrunner.operations._state import patch_tour
from showrunner.utils import (
    field_names,
    new_id,
    remove_by_id,
    replace_by_id,
    shallow_merge,
)

DEFAULT_SUBJECT = "New Campaign Subject"
DEFAULT_FROM_NAME = "Your Team"


# --- website -----------------------------------------------------------------


@register()
def add_website_section(state: StoreState, tour_id: str, type: str) -> StoreState:
    if type not in WEBSITE_SECTION_TYPES:
        raise ValidationError(f"Unknown section type {type!r}.")
    section = WebsiteSection(id=new_id("ws"), type=type, content=SectionContent())
    return patch_tour(
        state, tour_id, lambda t: {"website": [*(t.website or []), section]}
    )


@register()
def update_website_section(
    state: StoreState, tour_id: str, section_id: str, content: dict
) -> StoreState:
    """Replaces a section's content; keys not in `content` keep their values."""

    def edit(section):
        merged = shallow_merge(section.content, field_names(SectionContent, content))
        return shallow_merge(section, {"content": merged})

    return patch_tour(
        state,
        tour_id,
        lambda t: {"website": replace_by_id(t.website or [], section_id, edit)},
    )


@register(
    confirm="Are you sure you want to delete this section? This action cannot be undone."
)
def delete_website_section(state: StoreState, tour_id: str, section_id: str) -> StoreState:
    return patch_tour(
        state, tour_id, lambda t: {"website": remove_by_id(t.website or [], section_id)}
    )


def swap_with_neighbour(items: list, index: int, direction: str) -> list:
    """
    Swaps the item at `index` with the one above or below it.

    Returns:
        list: A new list, or the original list when the move would leave the range.
    """
    target = index - 1 if direction == "up" else index + 1
    if not (0 <= index < len(items)) or not (0 <= target < len(items)):
        return items
    items = list(items)
    items[index], items[target] = items[target], items[index]
    return items


@register()
def move_website_section(
    state: StoreState, tour_id: str, index: int, direction: str
) -> StoreState:
    if direction not in ("up", "down"):
        raise ValidationError(f"Unknown direction {direction!r}.")
    return patch_tour(
        state,
        tour_id,
        lambda t: {"website": swap_with_neighbour(t.website or [], index, direction)},
    )


@register()
def toggle_website_deployment(state: StoreState, tour_id: str) -> StoreState:
    return patch_tour(
        state,
        tour_id,
        lambda t: {"is_website_deployed": not t.is_website_deployed},
    )


# --- campaigns ---------------------------------------------------------------


@register()
def add_campaign(
    state: StoreState, tour_id: str, name: str, scheduled_date: str | None = None
) -> StoreState:
    """
    Creates a campaign. A scheduled date makes it `Scheduled`; without one it
    is a `Draft`.
    """
    if not (name or "").strip():
        raise ValidationError("Please enter a campaign name.")
    campaign = EmailCampaign(
        id=new_id("camp"),
        name=name.strip(),
        status="Scheduled" if scheduled_date else "Draft",
        scheduled_date=scheduled_date or None,
        stats=CampaignStats(open_rate=0, click_rate=0),
        subject=DEFAULT_SUBJECT,
        from_name=DEFAULT_FROM_NAME,
        content=EmailContent(),
    )
    return patch_tour(
        state, tour_id, lambda t: {"campaigns": [*(t.campaigns or []), campaign]}
    )


@register()
def update_campaign(
    state: StoreState, tour_id: str, campaign_id: str, data: dict
) -> StoreState:
    """
    Shallow-merges `data` into a campaign. Nested content and segmentation are
    replaced wholesale and may be given as dicts.
    """
    return patch_tour(
        state,
        tour_id,
        lambda t: {
            "campaigns": replace_by_id(
                t.campaigns or [], campaign_id, lambda c: shallow_merge(c, data)
            )
        },
    )


@register(confirm="Are you sure you want to delete this campaign?")
def delete_campaign(state: StoreState, tour_id: str, campaign_id: str) -> StoreState:
    return patch_tour(
        state,
        tour_id,
        lambda t: {"campaigns": remove_by_id(t.campaigns or [], campaign_id)},
    )
