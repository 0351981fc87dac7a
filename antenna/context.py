"""Initial context fetched over HTTP before the channel opens: who am I, which room, which profiles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

import structlog

from .config import ClientConfig
from .errors import ContextFetchError
from .http_utils import auth_headers, get_json
from .roster import PlayerSlot
from .status import RoomInfo

log = structlog.get_logger(__name__)

JsonGetter = Callable[[str, dict[str, str], float], Any]


@dataclass(frozen=True)
class UserInfo:
    user_id: int
    nickname: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.user_id, "nickname": self.nickname}


@dataclass(frozen=True)
class RoomContext:
    """Everything the session needs before the first server push arrives."""

    user: UserInfo
    room: RoomInfo
    profiles: tuple[PlayerSlot, ...] = ()

    @property
    def own_profile_ids(self) -> tuple[int, ...]:
        return tuple(profile.profile_id for profile in self.profiles if profile.profile_id is not None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user": self.user.to_dict(),
            "room": self.room.to_dict(),
            "profiles": [profile.to_dict() for profile in self.profiles],
        }


def fetch_context(config: ClientConfig, room_id: int | None = None, *, getter: JsonGetter = get_json) -> RoomContext:
    """Fetch `/me`, `/room/{id}` and `/profile/my`. Raises `ContextFetchError` on any failure."""
    room_id = room_id if room_id is not None else config.require_room_id()
    headers = auth_headers(config.require_auth_token())
    timeout = config.http_timeout_sec

    me_url = f"{config.api_url}/me"
    room_url = f"{config.api_url}/room/{room_id}"
    profiles_url = f"{config.api_url}/profile/my"

    raw_user = getter(me_url, headers, timeout)
    raw_room = getter(room_url, headers, timeout)
    raw_profiles = getter(profiles_url, headers, timeout)

    try:
        user = UserInfo(user_id=int(_object(raw_user)["id"]), nickname=str(_object(raw_user).get("nickname", "")))
    except (KeyError, TypeError, ValueError) as exc:
        raise ContextFetchError(me_url, f"Unexpected user payload: {exc}") from exc
    try:
        room = RoomInfo.from_dict(_object(raw_room))
    except (KeyError, TypeError, ValueError) as exc:
        raise ContextFetchError(room_url, f"Unexpected room payload: {exc}") from exc
    try:
        profiles = tuple(PlayerSlot.from_dict(_object(item)) for item in (raw_profiles or []))
    except (KeyError, TypeError, ValueError) as exc:
        raise ContextFetchError(profiles_url, f"Unexpected profile payload: {exc}") from exc

    log.info("context_fetched", user_id=user.user_id, room_id=room.room_id, profiles=len(profiles))
    return RoomContext(user=user, room=room, profiles=profiles)


def _object(value: Any) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"expected an object, got {type(value).__name__}")
    return value
