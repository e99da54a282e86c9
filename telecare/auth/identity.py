from dataclasses import dataclass, field

from telecare.models.user import ROLE_DOCTOR, ROLE_PATIENT


@dataclass(frozen=True)
class CallerIdentity:
    """The authenticated caller, passed explicitly into every operation."""

    user_id: int
    roles: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_doctor(self) -> bool:
        return ROLE_DOCTOR in self.roles

    @property
    def is_patient(self) -> bool:
        return ROLE_PATIENT in self.roles
