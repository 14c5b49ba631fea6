import logging
import random
import threading

import redis

logger = logging.getLogger(__name__)

DEFAULT_PORT = 6379


def parse_address(addr):
    """Splits ``host[:port]`` into (host, port)."""
    host, sep, port = addr.strip().rpartition(':')
    if not sep:
        return port, DEFAULT_PORT
    try:
        return host, int(port)
    except ValueError as e:
        raise ValueError(f"Invalid port in address '{addr}'") from e


def _connection_pool(addr, password=None, timeout=None):
    host, port = parse_address(addr)
    logger.debug("Creating connection pool for %s:%d", host, port)
    return redis.ConnectionPool(
        host=host,
        port=port,
        password=password,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
    )


class SingleHostPool:
    """Hands out connections to one server."""

    def __init__(self, addr, password=None, timeout=None):
        self.addr = addr
        self._pool = _connection_pool(addr, password, timeout)

    def get(self):
        """
        Returns a ``redis.Redis`` bound to the pool. Each command it runs
        borrows a connection and gives it back when the reply has been read,
        also when the command fails.
        """
        return redis.Redis(connection_pool=self._pool)

    def close(self):
        self._pool.disconnect()


class MultiHostPool:
    """
    Hands out connections to several servers, picking one at random for
    every request. A pool per host is created the first time it is picked.
    """

    def __init__(self, addrs, password=None, timeout=None):
        if not addrs:
            raise ValueError("MultiHostPool needs at least one address")
        self.addrs = list(addrs)
        self._password = password
        self._timeout = timeout
        self._pools = {}
        self._lock = threading.Lock()

    def get(self):
        with self._lock:
            addr = random.choice(self.addrs)
            pool = self._pools.get(addr)
            if pool is None:
                pool = _connection_pool(addr, self._password, self._timeout)
                self._pools[addr] = pool
        return redis.Redis(connection_pool=pool)

    def close(self):
        with self._lock:
            pools = list(self._pools.values())
            self._pools.clear()
        for pool in pools:
            pool.disconnect()


class RedisPool:
    """Adapts an existing ``redis.Redis`` client to the pool interface."""

    def __init__(self, client):
        self._client = client

    def get(self):
        return self._client

    def close(self):
        # The caller owns the client and closes it.
        pass


def new_pool(addr, password=None, timeout=None):
    """
    Builds a pool for ``addr``, a single ``host:port`` or a comma separated
    list of them.
    """
    addrs = [a for a in addr.split(',') if a.strip()]
    if len(addrs) == 1:
        return SingleHostPool(addrs[0], password, timeout)
    return MultiHostPool(addrs, password, timeout)
