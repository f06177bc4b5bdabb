from __future__ import annotations

import json
from dataclasses import dataclass, field

from aiohttp import WSMsgType, web

import protocol


@dataclass
class Member:
    ws: web.WebSocketResponse
    room: str | None = None
    client_id: int | None = None
    subscribed: bool = False


@dataclass
class Room:
    name: str
    members: dict = field(default_factory=dict)  # client_id -> Member

    def free_id(self) -> int:
        i = 0
        while i in self.members:
            i += 1
        return i


ROOMS = web.AppKey("rooms", dict)


async def _send(member: Member, msg):
    try:
        await member.ws.send_str(json.dumps(msg))
    except ConnectionResetError:
        pass  # peer gone, cleaned up by its own handler


async def _send_count(room: Room, only: Member | None = None):
    count = [protocol.CLIENT_COUNT, len(room.members)]
    targets = [only] if only is not None else list(room.members.values())
    for m in targets:
        if m.subscribed:
            await _send(m, count)


async def _enter(rooms, member: Member, name: str):
    if member.room == name:
        return
    await _leave(rooms, member)
    room = rooms.setdefault(name, Room(name))
    member.room = name
    member.client_id = room.free_id()
    room.members[member.client_id] = member
    print(f"Relay: #{member.client_id} entered '{name}' ({len(room.members)})")
    await _send(member, [protocol.CLIENT_ID, member.client_id])
    await _send_count(room)


async def _leave(rooms, member: Member):
    room = rooms.get(member.room)
    member.room = None
    if room is None:
        return
    room.members.pop(member.client_id, None)
    print(f"Relay: #{member.client_id} left '{room.name}' ({len(room.members)})")
    member.client_id = None
    if room.members:
        await _send_count(room)
    else:
        rooms.pop(room.name, None)


async def _dispatch(rooms, member: Member, msg):
    selector = msg[0]
    room = rooms.get(member.room)

    if selector == protocol.ENTER_ROOM:
        if len(msg) > 1 and isinstance(msg[1], str) and msg[1]:
            await _enter(rooms, member, msg[1])
    elif selector == protocol.EXIT_ROOM:
        await _leave(rooms, member)
    elif selector == protocol.SUBSCRIBE_CLIENT_COUNT:
        member.subscribed = True
        if room is not None:
            await _send_count(room, only=member)
    elif selector == protocol.UNSUBSCRIBE_CLIENT_COUNT:
        member.subscribed = False
    elif selector == protocol.BROADCAST_MESSAGE:
        if room is None or len(msg) < 2:
            return
        for m in list(room.members.values()):
            await _send(m, msg[1])


async def ws_handler(request):
    ws = web.WebSocketResponse()
    await ws.prepare(request)

    rooms = request.app[ROOMS]
    member = Member(ws)

    try:
        async for raw in ws:
            if raw.type != WSMsgType.TEXT:
                continue
            msg = protocol.decode(raw.data)
            if msg is None:
                continue
            await _dispatch(rooms, member, msg)
    finally:
        await _leave(rooms, member)

    return ws


def create_app():
    app = web.Application()
    app[ROOMS] = {}
    app.router.add_get("/", ws_handler)
    app.router.add_get("/ws", ws_handler)
    return app


if __name__ == "__main__":
    web.run_app(create_app(), host="0.0.0.0", port=8765)
