from showrunner.config import Config
from showrunner.rider import RiderParser
from showrunner.service import ShowRunner, always_confirm, print_notice
from showrunner.store import EntityStore, JsonBlobStorage, load_default_dataset


def load_service(
    config: Config, notify=print_notice, confirm=always_confirm, client=None
) -> ShowRunner:
    """Build a ShowRunner service from a configuration.

    Args:
        config: Workspace configuration.
        notify: User-facing notice hook.
        confirm: Confirmation hook for destructive operations.
        client: Optional preconfigured OpenAI client for rider import.

    Returns:
        ShowRunner: Service over the persisted store in `config.state_dir`.
    """
    defaults = load_default_dataset() if config.use_default_dataset else {}
    store = EntityStore(JsonBlobStorage(config.state_dir), defaults=defaults)
    parser = RiderParser(api_key=config.api_key(), model=config.ai_model, client=client)
    return ShowRunner(store, notify=notify, confirm=confirm, rider_parser=parser)
