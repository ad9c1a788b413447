from datetime import date

from loguru import logger

from kmutnb.reserver.model import StageResult
from kmutnb.reserver.portal.portal import Portal


def make_date_expire(year: int, month: int) -> str:
    """First day of the month after `month`, formatted YYYY-MM-01.

    January is the exception: it maps to December of the previous year, the
    value this request has always carried. December rolls over to January of
    the next year.
    """
    if month == 1:
        year, month = year - 1, 12
    elif month == 12:
        year, month = year + 1, 1
    else:
        month += 1
    return f"{year:04d}-{month:02d}-01"


def build_reservation_form(date_expire: str) -> dict[str, str]:
    return {
        "userId": "",
        "date_expire": date_expire,
        "status_number": "0",
        "Submit_get": "",
    }


class ReservationService:
    """Service for the Adobe license reservation.

    Works out the expiry date to ask for and sends the reservation form
    through an already logged-in `Portal`.
    """

    def __init__(self, portal: Portal) -> None:
        self.portal = portal

    def reserve(self, date_expire: str | None = None, today: date | None = None) -> StageResult:
        """Request an Adobe license.

        Args:
            date_expire: Expiry date to request (YYYY-MM-DD). Computed from `today` when omitted.
            today: Reference date for the computed expiry. Defaults to the local date.

        Returns:
            StageResult: The successful reservation step, with the portal's confirmation excerpt.
        """
        if date_expire is None:
            today = today or date.today()
            date_expire = make_date_expire(today.year, today.month)

        logger.info(f"Reserving Adobe license until {date_expire}")
        return self.portal.reserve(build_reservation_form(date_expire))
