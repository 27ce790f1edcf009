from showrunner.models import Person, StoreState


class Operation:
    """
    A named mutation: a pure reducer plus the gates the service checks first.

    Attributes:
        name (str): Registry name, e.g. "delete_tour".
        reducer (callable): `reducer(state, **payload) -> StoreState`.
        access (callable): Policy `access(state, user, payload) -> bool`.
        confirm (str, callable or None): Confirmation prompt for destructive
            operations, or a callable building it from `(state, payload)`.
        actor (str or None): Reducer parameter that receives the acting user's id.
    """

    def __init__(self, name: str, reducer, access, confirm=None, actor=None):
        self.name = name
        self.reducer = reducer
        self.access = access
        self.confirm = confirm
        self.actor = actor

    def __repr__(self):
        return f"Operation({self.name})"

    def __call__(self, state: StoreState, **payload) -> StoreState:
        return self.reducer(state, **payload)

    def allowed(self, state: StoreState, user: Person | None, payload: dict) -> bool:
        return self.access(state, user, payload)

    def confirmation(self, state: StoreState, payload: dict) -> str | None:
        """Returns the prompt to confirm before applying, or None."""
        if callable(self.confirm):
            return self.confirm(state, payload)
        return self.confirm
