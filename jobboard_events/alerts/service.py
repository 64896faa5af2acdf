"""Management of saved job alerts."""

from typing import Callable, List, Mapping, Optional, Union

from pydantic import ValidationError

from jobboard_events.domain.exceptions import AuthorizationError, InvalidInputError, NotFoundError
from jobboard_events.domain.models import Actor, CriteriaInput, CriteriaRecord
from jobboard_events.logging import get_logger
from jobboard_events.persistence import CriteriaRepository, get_session
from jobboard_events.utils.timestamps import utc_now

logger = get_logger(__name__, component="alerts")

AlertData = Union[CriteriaInput, Mapping]


class CriteriaService:
    """Create, read, update, delete and toggle job alerts.

    Owners manage their own alerts. Administrators may read and delete any
    alert but may not edit or toggle one.
    """

    def __init__(self, session_factory: Optional[Callable] = None, clock: Optional[Callable] = None):
        self.session_factory = session_factory or get_session
        self.clock = clock or utc_now

    def create_alert(self, owner: Actor, data: AlertData) -> CriteriaRecord:
        """Save a new alert for ``owner``.

        Raises:
            InvalidInputError: If the alert fields are invalid
        """
        alert = self._parse(data)
        with self.session_factory() as session:
            record = CriteriaRepository(session).create(owner.id, alert, self.clock())

        logger.info(
            f"Created job alert {record.id} for {owner.id}",
            extra={"event": "alert.created", "alert_id": record.id, "owner_id": owner.id},
        )
        return record

    def list_alerts(self, owner: Actor) -> List[CriteriaRecord]:
        """The owner's alerts, newest first."""
        with self.session_factory() as session:
            return CriteriaRepository(session).list_for_owner(owner.id)

    def get_alert(self, alert_id: int, requester: Actor) -> CriteriaRecord:
        """Fetch one alert.

        Raises:
            NotFoundError: If it does not exist
            AuthorizationError: If the requester is neither owner nor administrator
        """
        with self.session_factory() as session:
            record = CriteriaRepository(session).get_by_id(alert_id)
        self._check(record, alert_id, requester, allow_admin=True)
        return record

    def update_alert(self, alert_id: int, requester: Actor, changes: AlertData) -> CriteriaRecord:
        """Apply a partial update; only the fields present in ``changes`` change.

        Raises:
            InvalidInputError: If a field is unknown or invalid
            NotFoundError: If the alert does not exist
            AuthorizationError: If the requester is not the owner
        """
        if isinstance(changes, Mapping):
            unknown = sorted(set(changes) - set(CriteriaInput.model_fields))
            if unknown:
                raise InvalidInputError(
                    "Invalid job alert", errors=[f"{name}: unknown field" for name in unknown]
                )
        alert = self._parse(changes)
        fields = set(alert.model_fields_set)

        with self.session_factory() as session:
            repo = CriteriaRepository(session)
            self._check(repo.get_by_id(alert_id), alert_id, requester, allow_admin=False)
            record = repo.update(alert_id, alert, fields, self.clock())

        logger.info(
            f"Updated job alert {alert_id}",
            extra={"event": "alert.updated", "alert_id": alert_id, "fields": sorted(fields)},
        )
        return record

    def delete_alert(self, alert_id: int, requester: Actor) -> None:
        """Delete an alert.

        Raises:
            NotFoundError: If it does not exist
            AuthorizationError: If the requester is neither owner nor administrator
        """
        with self.session_factory() as session:
            repo = CriteriaRepository(session)
            self._check(repo.get_by_id(alert_id), alert_id, requester, allow_admin=True)
            repo.delete(alert_id)

        logger.info(
            f"Deleted job alert {alert_id}",
            extra={"event": "alert.deleted", "alert_id": alert_id, "requester_id": requester.id},
        )

    def toggle_alert(self, alert_id: int, requester: Actor) -> CriteriaRecord:
        """Flip the alert's active flag without deleting it.

        Raises:
            NotFoundError: If it does not exist
            AuthorizationError: If the requester is not the owner
        """
        with self.session_factory() as session:
            repo = CriteriaRepository(session)
            current = repo.get_by_id(alert_id)
            self._check(current, alert_id, requester, allow_admin=False)
            record = repo.set_active(alert_id, not current.is_active, self.clock())

        logger.info(
            f"Job alert {alert_id} is now {'active' if record.is_active else 'inactive'}",
            extra={"event": "alert.toggled", "alert_id": alert_id, "is_active": record.is_active},
        )
        return record

    @staticmethod
    def _parse(data: AlertData) -> CriteriaInput:
        if isinstance(data, CriteriaInput):
            return data
        try:
            return CriteriaInput.model_validate(data)
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
                for error in e.errors()
            ]
            raise InvalidInputError("Invalid job alert", errors=errors) from e

    @staticmethod
    def _check(
        record: Optional[CriteriaRecord], alert_id: int, requester: Actor, allow_admin: bool
    ) -> None:
        if record is None:
            raise NotFoundError("Job alert", alert_id)
        if record.owner_id == requester.id:
            return
        if allow_admin and requester.is_admin:
            return
        raise AuthorizationError(f"User {requester.id} may not access job alert {alert_id}")
