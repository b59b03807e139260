"""network/zmq_hotplug.py

Socket options for the player's PUB socket.

The player usually starts before (or outlives) its subscribers: map viewers,
loggers, bridges. Subscribers come and go while a long replay runs, so we
apply conservative best-effort options:
  - never block on close (linger 0) and never block a send for long
  - bounded send queue so a stalled subscriber can't grow memory unbounded
  - ZMQ heartbeats + short TCP keepalive so dead peers are reaped quickly

All options are guarded so older libzmq/pyzmq builds keep working.
"""

from __future__ import annotations

from typing import Optional

import zmq


def _set(sock: zmq.Socket, name: str, val) -> bool:
    opt = getattr(zmq, name, None)
    if opt is None:
        return False
    try:
        sock.setsockopt(opt, val)
        return True
    except zmq.ZMQError:
        return False


def apply_pub_opts(
    sock: zmq.Socket,
    *,
    linger_ms: int = 0,
    snd_hwm: Optional[int] = 10_000,
    snd_timeout_ms: Optional[int] = None,
    reconnect_ivl_ms: int = 250,
    reconnect_ivl_max_ms: int = 2000,
    heartbeat_ivl_ms: int = 1000,
    heartbeat_timeout_ms: int = 3000,
    heartbeat_ttl_ms: int = 6000,
    tcp_keepalive: bool = True,
    tcp_keepalive_idle_s: int = 10,
    tcp_keepalive_intvl_s: int = 5,
    tcp_keepalive_cnt: int = 3,
    tcp_nodelay: Optional[bool] = True,
    tos: Optional[int] = None,
) -> None:
    """Apply best-effort publisher options to a socket."""

    _set(sock, "LINGER", int(linger_ms))

    if snd_hwm is not None:
        _set(sock, "SNDHWM", int(snd_hwm))
    if snd_timeout_ms is not None:
        _set(sock, "SNDTIMEO", int(snd_timeout_ms))

    # Only matters when the player connects to a proxy instead of binding.
    _set(sock, "RECONNECT_IVL", int(reconnect_ivl_ms))
    _set(sock, "RECONNECT_IVL_MAX", int(reconnect_ivl_max_ms))

    # Heartbeats (libzmq >= 4.1)
    _set(sock, "HEARTBEAT_IVL", int(heartbeat_ivl_ms))
    _set(sock, "HEARTBEAT_TIMEOUT", int(heartbeat_timeout_ms))
    _set(sock, "HEARTBEAT_TTL", int(heartbeat_ttl_ms))

    if tcp_keepalive:
        _set(sock, "TCP_KEEPALIVE", 1)
        _set(sock, "TCP_KEEPALIVE_IDLE", int(tcp_keepalive_idle_s))
        _set(sock, "TCP_KEEPALIVE_INTVL", int(tcp_keepalive_intvl_s))
        _set(sock, "TCP_KEEPALIVE_CNT", int(tcp_keepalive_cnt))

    # AIS sentences are tiny; don't let Nagle batch them.
    if tcp_nodelay is not None:
        _set(sock, "TCP_NODELAY", 1 if tcp_nodelay else 0)

    if tos is not None:
        _set(sock, "TOS", int(tos))
