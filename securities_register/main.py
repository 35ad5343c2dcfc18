"""Main module entrypoint for local runtime execution.

This module validates startup configuration and either launches the FastAPI
service or prints a reconciliation summary for one entity.
"""

import argparse
import json
import logging

import uvicorn

from securities_register.api.serializers import api_serialize_security_summary
from securities_register.bootstrap import bootstrap_create_application, bootstrap_create_ledger_service
from securities_register.config import AppSettings, config_configure_logging, config_load_settings
from securities_register.domain import LedgerError

logger = logging.getLogger(__name__)


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
    """

    argument_parser = argparse.ArgumentParser(description="Securities register runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "summary"),
        help="Runtime command: `api` starts server, `summary` prints holdings summaries for one entity",
        type=str,
    )
    argument_parser.add_argument(
        "--entity-id",
        dest="entity_id",
        type=str,
        help="Entity identifier for `summary`",
    )
    argument_parser.add_argument(
        "--include-archived",
        dest="include_archived",
        action="store_true",
        help="Include archived security classes in `summary`",
    )
    parsed_arguments = argument_parser.parse_args()

    settings = config_load_settings()
    config_configure_logging(settings)

    if parsed_arguments.command == "summary":
        if not parsed_arguments.entity_id:
            argument_parser.error("--entity-id is required for `summary`")
        raise SystemExit(
            main_print_summary(
                settings=settings,
                entity_id=parsed_arguments.entity_id,
                include_archived=parsed_arguments.include_archived,
            )
        )

    application = bootstrap_create_application(settings=settings)
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
    )


def main_print_summary(settings: AppSettings, entity_id: str, include_archived: bool) -> int:
    """Print security summaries and derived member holdings as JSON.

    Args:
        settings: Validated runtime settings.
        entity_id: Entity identifier.
        include_archived: Whether archived classes are included.

    Returns:
        int: Process exit code; 1 when the ledger rejects the request.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    ledger_service = bootstrap_create_ledger_service(settings=settings)
    try:
        summaries = ledger_service.ledger_security_summary(entity_id=entity_id, include_archived=include_archived)
        holdings = ledger_service.ledger_member_holdings(entity_id=entity_id, include_archived=include_archived)
    except LedgerError as error:
        logger.error("summary failed: code=%s detail=%s", error.code, error.message)
        return 1

    payload = {
        "entity_id": entity_id,
        "securities": [api_serialize_security_summary(summary) for summary in summaries],
        "member_holdings": holdings,
    }
    print(json.dumps(payload, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    main()
