import sys
import logging

from pydantic import ValidationError

from csv_io import write_accounts
from errors import IngestionError
from payments_engine import PaymentsEngine
from settings import get_settings

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Invalid PAYMENTS_* configuration: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=settings.log_level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    if len(argv) != 1:
        print("Usage: payments <input.csv>", file=sys.stderr)
        return 2

    engine = PaymentsEngine(settings)
    try:
        engine.process_file(argv[0])
    except IngestionError as e:
        logger.error(str(e))
        return 1

    write_accounts(engine.ledger.snapshot(), sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
