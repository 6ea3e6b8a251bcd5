"""Stored data model: dose slots, medications and the active profile."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable
from uuid import uuid4

import voluptuous as vol

from .const import AVATARS, DEFAULT_AVATAR
from .schedule import DoseStatus, classify, parse_time


def new_id() -> str:
    return uuid4().hex


@dataclass(frozen=True)
class DoseSlot:
    """One scheduled intake time with its own completion flag."""

    time: str
    taken: bool = False
    id: str = field(default_factory=new_id)

    def status(self, current: str) -> DoseStatus:
        return classify(self.time, self.taken, current)

    def as_dict(self) -> dict[str, Any]:
        return {"id": self.id, "time": self.time, "taken": self.taken}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DoseSlot:
        if not isinstance(data, dict) or not data.get("id"):
            raise vol.Invalid(f"Invalid dose slot: {data!r}")
        taken = data.get("taken", False)
        if not isinstance(taken, bool):
            raise vol.Invalid(f"Dose slot {data['id']} has invalid taken flag: {taken!r}")
        return cls(id=str(data["id"]), time=parse_time(data.get("time")), taken=taken)


@dataclass(frozen=True)
class Medication:
    name: str
    dosage: str = ""
    doses: tuple[DoseSlot, ...] = ()
    id: str = field(default_factory=new_id)

    @classmethod
    def create(cls, name: str, dosage: str, times: Iterable[str]) -> Medication:
        return cls(name=name, dosage=dosage, doses=tuple(DoseSlot(time=t) for t in times))

    def sorted_doses(self) -> list[DoseSlot]:
        return sorted(self.doses, key=lambda d: d.time)

    def with_times(self, times: list[str]) -> Medication:
        """Replace the schedule; slots matched by position keep their id and flag."""
        doses: list[DoseSlot] = []
        for idx, t in enumerate(times):
            if idx < len(self.doses):
                existing = self.doses[idx]
                doses.append(DoseSlot(id=existing.id, time=t, taken=existing.taken))
            else:
                doses.append(DoseSlot(time=t))
        return replace(self, doses=tuple(doses))

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "dosage": self.dosage,
            "doses": [d.as_dict() for d in self.doses],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Medication:
        if not isinstance(data, dict) or not data.get("id"):
            raise vol.Invalid(f"Invalid medication: {data!r}")
        name = str(data.get("name") or "").strip()
        if not name:
            raise vol.Invalid(f"Medication {data['id']} has no name")
        doses = data.get("doses") or []
        if not isinstance(doses, list):
            raise vol.Invalid(f"Medication {data['id']} has invalid doses")
        slots = tuple(DoseSlot.from_dict(d) for d in doses)
        if len({s.id for s in slots}) != len(slots):
            raise vol.Invalid(f"Medication {data['id']} has duplicate dose ids")
        return cls(
            id=str(data["id"]),
            name=name,
            dosage=str(data.get("dosage") or ""),
            doses=slots,
        )


@dataclass(frozen=True)
class Profile:
    name: str
    avatar: str = DEFAULT_AVATAR

    def as_dict(self) -> dict[str, Any]:
        return {"name": self.name, "avatar": self.avatar}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Profile:
        if not isinstance(data, dict) or not str(data.get("name") or "").strip():
            raise vol.Invalid(f"Invalid profile: {data!r}")
        avatar = data.get("avatar")
        if avatar not in AVATARS:
            avatar = DEFAULT_AVATAR
        return cls(name=str(data["name"]).strip(), avatar=avatar)
