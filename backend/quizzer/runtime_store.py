from __future__ import annotations

from typing import Iterator, Protocol

from .runtime_types import Room


class RoomStore(Protocol):
    def get(self, code: str) -> Room | None: ...

    def save(self, room: Room) -> None: ...

    def delete(self, code: str) -> None: ...

    def __contains__(self, code: object) -> bool: ...

    def __len__(self) -> int: ...

    def __iter__(self) -> Iterator[Room]: ...

    def clear(self) -> None: ...


class InMemoryRoomStore:
    def __init__(self) -> None:
        self._rooms: dict[str, Room] = {}

    def get(self, code: str) -> Room | None:
        return self._rooms.get(code)

    def save(self, room: Room) -> None:
        self._rooms[room.code] = room

    def delete(self, code: str) -> None:
        self._rooms.pop(code, None)

    def __contains__(self, code: object) -> bool:
        return code in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def __iter__(self) -> Iterator[Room]:
        return iter(list(self._rooms.values()))

    def clear(self) -> None:
        self._rooms.clear()
