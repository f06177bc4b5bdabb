"""
Relay connection (web-rooms protocol) for one participant.

The websocket runs on a daemon thread with its own asyncio loop. Inbound
frames are only queued there; pump() applies them to the ClientSession from
the frame loop, once per frame, so the session is never touched by two
threads.

States: DISCONNECTED -> CONNECTING -> JOINED -> DISCONNECTED
"""

from __future__ import annotations

import asyncio
import queue
import threading
from enum import Enum

import aiohttp

import protocol


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    JOINED = "joined"


# Queued by the network thread at the start of every connection.
_CONNECTED = object()


class SyncClient:
    def __init__(self, session, params, url=None, room=None):
        self.session = session
        self.params = params
        self.url = url or params.relay_url
        self.room = room or params.room
        self.state = ConnectionState.DISCONNECTED

        self._inbox = queue.Queue()
        self._outbox = None
        self._loop = None
        self._main_task = None
        self._thread = None
        self._stop = threading.Event()
        self._connections = 0  # opened (network thread)
        self._applied = 0      # seen by pump() (frame loop)
        self._pointer_announced = False

    @property
    def joined(self) -> bool:
        return self.state is ConnectionState.JOINED

    # -------- lifecycle --------

    def start(self):
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._worker, daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0):
        self._stop.set()
        loop, task = self._loop, self._main_task
        if loop is not None and task is not None:
            try:
                loop.call_soon_threadsafe(task.cancel)
            except RuntimeError:
                pass  # loop already closed
        if self._thread is not None:
            self._thread.join(timeout)
        self.state = ConnectionState.DISCONNECTED

    def _worker(self):
        try:
            asyncio.run(self._run())
        except asyncio.CancelledError:
            pass
        except Exception as e:
            self.state = ConnectionState.DISCONNECTED
            print(f"❌ Relay client stopped: {e}")

    async def _run(self):
        self._loop = asyncio.get_running_loop()
        self._main_task = asyncio.current_task()
        p = self.params
        attempt = 0
        try:
            while not self._stop.is_set():
                if await self._connect_once():
                    attempt = 0
                if self._stop.is_set() or attempt >= p.reconnect_attempts:
                    break
                delay = min(p.reconnect_backoff * (2 ** attempt), p.reconnect_backoff_max)
                attempt += 1
                print(f"⚠️  Relay reconnect {attempt}/{p.reconnect_attempts} in {delay:.1f}s")
                await asyncio.sleep(delay)
        finally:
            self.state = ConnectionState.DISCONNECTED
            self._loop = None
            self._main_task = None

    async def _connect_once(self) -> bool:
        self.state = ConnectionState.CONNECTING
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self.params.connect_timeout_sec)
        opened = False
        try:
            async with aiohttp.ClientSession(timeout=timeout) as http:
                async with http.ws_connect(self.url) as ws:
                    opened = True
                    await self._serve(ws)
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            print(f"⚠️  Relay connection failed: {e}")
        finally:
            self.state = ConnectionState.DISCONNECTED
        if opened:
            print("❌ Relay disconnected")
        return opened

    async def _serve(self, ws):
        outbox = asyncio.Queue()
        self._outbox = outbox
        self._connections += 1
        self._inbox.put(_CONNECTED)

        writer = asyncio.create_task(self._write(ws, outbox))
        keepalive = asyncio.create_task(self._keepalive())

        self.state = ConnectionState.JOINED
        print(f"✅ Relay connected: {self.url} (room '{self.room}')")
        self.send(protocol.ENTER_ROOM, self.room)
        self.send(protocol.SUBSCRIBE_CLIENT_COUNT)

        try:
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self.feed(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    break
        finally:
            self.state = ConnectionState.DISCONNECTED
            self._outbox = None
            writer.cancel()
            keepalive.cancel()
            await asyncio.gather(writer, keepalive, return_exceptions=True)

    async def _write(self, ws, outbox):
        while True:
            text = await outbox.get()
            try:
                await ws.send_str(text)
            except ConnectionResetError:
                return

    async def _keepalive(self):
        while True:
            await asyncio.sleep(self.params.keepalive_sec)
            self._send_text(protocol.KEEPALIVE)

    # -------- outbound --------

    def send(self, selector: str, *args) -> bool:
        """Fire-and-forget. Dropped (returns False) unless joined."""
        return self._send_text(protocol.encode(selector, *args))

    def _send_text(self, text: str) -> bool:
        if not self.joined:
            return False
        self._transmit(text)
        return True

    def _transmit(self, text: str):
        loop, outbox = self._loop, self._outbox
        if loop is None or outbox is None:
            return
        try:
            loop.call_soon_threadsafe(outbox.put_nowait, text)
        except RuntimeError:
            pass  # loop already closed

    def _current_id(self):
        """Own id, or None while a newer connection has not been pumped yet."""
        if self._applied != self._connections:
            return None
        return self.session.own_id

    def move_pointer(self, nx: float, ny: float) -> bool:
        """Broadcast the local fingertip in normalised [0..1] coordinates."""
        own = self._current_id()
        if own is None:
            return False
        sent = self.send(protocol.BROADCAST_MESSAGE, protocol.move_message(own, nx, ny))
        if sent:
            self._pointer_announced = True
        return sent

    def release_pointer(self) -> bool:
        """Tell peers our pointer is gone (once per lost hand)."""
        if not self._pointer_announced or not self.params.send_end_on_release:
            return False
        self._pointer_announced = False
        own = self._current_id()
        if own is None:
            return False
        return self.send(protocol.BROADCAST_MESSAGE, protocol.end_message(own))

    # -------- inbound --------

    def feed(self, text: str):
        self._inbox.put(text)

    def pump(self) -> int:
        """Apply every queued frame to the session. Call from the frame loop."""
        n = 0
        while True:
            try:
                item = self._inbox.get_nowait()
            except queue.Empty:
                return n
            if item is _CONNECTED:
                # fresh connection: new id, peers re-announce themselves
                self.session.reset()
                self._pointer_announced = False
                self._applied += 1
            else:
                self.handle_message(item)
            n += 1

    def handle_message(self, text: str):
        msg = protocol.decode(text)
        if msg is None:
            return

        selector = msg[0]
        s = self.session

        if selector == protocol.CLIENT_ID:
            cid = protocol.parse_int(msg)
            if cid is None:
                return
            if s.assign_id(cid):
                print(f"✅ Relay assigned client id #{cid}")
            elif cid != s.own_id:
                print(f"⚠️  Ignoring repeated client id #{cid} (keeping #{s.own_id})")

        elif selector == protocol.CLIENT_COUNT:
            count = protocol.parse_int(msg)
            if count is not None:
                s.set_count(count)

        elif selector == protocol.MOVE:
            move = protocol.parse_move(msg)
            if move is not None:
                s.upsert_remote(*move)

        elif selector == protocol.END:
            identity = protocol.parse_int(msg)
            if identity is not None:
                s.remove_remote(identity)
