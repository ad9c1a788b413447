from loguru import logger

from kmutnb.reserver.config import Config
from kmutnb.reserver.error import ReserverError
from kmutnb.reserver.model import Outcome
from kmutnb.reserver.portal.portal import Portal
from kmutnb.reserver.service.reservation_service import ReservationService


class Reserve:
    """Runs login followed by the reservation, once."""

    def __init__(self, conf: Config, portal: Portal | None = None):
        self.conf = conf
        self.portal = portal or Portal(conf)
        self.reservation_service = ReservationService(self.portal)

    def start(self) -> Outcome:
        outcome = Outcome()
        try:
            outcome.login = self.portal.login(self.conf.credentials)
            outcome.reservation = self.reservation_service.reserve(self.conf.date_expire)
        except ReserverError as e:
            logger.error(str(e))
            outcome.error = e
        finally:
            self.portal.close()
        return outcome
