from dataclasses import dataclass


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of a core operation."""

    id: int
    role: str

    @classmethod
    def from_user(cls, user):
        return cls(id=user.pk, role=user.role)

    @property
    def is_parent(self):
        return self.role == 'parent'

    @property
    def is_doctor(self):
        return self.role == 'doctor'

    @property
    def is_admin(self):
        return self.role == 'admin'

    @property
    def is_staff(self):
        """Doctors and administrators see every child."""
        return self.role in ('doctor', 'admin')
