"""
Map distribution over TCP

The protocol is one message long: a client connects, the server writes the
encoded map (see map.codec) and closes the connection. There is no request,
no framing and no acknowledgement.

    client                    server
      | ------- connect -------> |
      | <------ map bytes ------ |
      | <------- close --------- |

Connections are served one at a time.
"""

import socket
from typing import Callable, Optional, Tuple

from .errors import MapWriteError
from .map.tilemap import TileMap

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 4567

# Seconds a client waits for the server before giving up
CONNECT_TIMEOUT = 10.0


def parse_address(address: str, default_port: int = DEFAULT_PORT) -> Tuple[str, int]:
    """
    Split "host[:port]" into (host, port).

    >>> parse_address("127.0.0.1:4567")
    ('127.0.0.1', 4567)
    >>> parse_address("example.org")
    ('example.org', 4567)
    """
    host, sep, port = address.rpartition(':')
    if not sep:
        return address, default_port
    try:
        return host, int(port)
    except ValueError:
        raise ValueError(f"invalid port in address '{address}'") from None


def serve(tile_map: TileMap, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT,
          max_clients: Optional[int] = None,
          on_listening: Optional[Callable[[Tuple[str, int]], None]] = None) -> int:
    """
    Send tile_map to every client that connects.

    Parameters:
    -----------
    tile_map : TileMap
        Map to distribute
    host, port : str, int
        Listening address (port 0 picks a free port)
    max_clients : int, optional
        Stop after this many connections; None serves forever
    on_listening : callable, optional
        Called with the bound (host, port) once the socket listens

    Returns:
    --------
    int : number of clients that received the map

    A client that drops the connection mid-transfer is reported and
    skipped; the loop keeps serving.
    """
    served = 0
    handled = 0

    with socket.create_server((host, port)) as listener:
        bound = listener.getsockname()[:2]
        print(f"listening on `{bound[0]}:{bound[1]}`")
        if on_listening is not None:
            on_listening(bound)

        while max_clients is None or handled < max_clients:
            conn, peer = listener.accept()
            handled += 1
            with conn:
                print(f"new client {peer[0]}:{peer[1]} is connected")
                try:
                    send_map(tile_map, conn)
                except (MapWriteError, OSError) as e:
                    print(f"Warning: could not send map to {peer[0]}:{peer[1]}: {e}")
                    continue
            served += 1

    return served


def send_map(tile_map: TileMap, conn: socket.socket):
    """Write tile_map to an already connected socket."""
    with conn.makefile('wb') as stream:
        tile_map.write(stream)


def fetch(address: str, timeout: float = CONNECT_TIMEOUT) -> TileMap:
    """
    Download the map served at "host[:port]".

    Raises:
    -------
    OSError : connection refused / timed out
    MapReadError : the server sent something that isn't a whole map
    """
    host, port = parse_address(address)
    with socket.create_connection((host, port), timeout=timeout) as conn:
        with conn.makefile('rb') as stream:
            return TileMap.read(stream)
