"""Example: drive the service layer directly, without Flask.

Controllers are thin; the rules live in the services.
"""

import importlib
from datetime import timedelta

from config import get_settings_module

from classbook.common.datetime_utils import today_local
from classbook.common.logging import setup_logging
from classbook.container import build_container


def main():
    setup_logging()
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)

    today = today_local()
    for occ in container.schedule_service.list_occurrences(1, today, today + timedelta(days=7)):
        print(occ.to_dict())
    print("session number:", container.attendance_service.session_number_for(1, today))
    print("makeup credits:", container.request_service.remaining_makeup_credits(1))


if __name__ == "__main__":
    main()
