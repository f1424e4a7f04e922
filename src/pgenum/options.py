from dataclasses import dataclass

from pgenum.codec import EnumCodec

from libb import ConfigOptions, scriptname

__all__ = ['DatabaseOptions']

REQUIRED_OPTIONS = ['hostname', 'username', 'password', 'database', 'port', 'timeout']


@dataclass
class DatabaseOptions(ConfigOptions):
    """Options

    supported driver names: `postgresql`

    Enum codecs:
    - codecs: codecs to register on every new connection; when empty the
      global CodecRegistry is used

    Connection pooling options:
    - use_pool: Whether to use connection pooling (default: False)
    - pool_max_connections: Maximum connections in pool (default: 5)
    - pool_max_idle_time: Maximum seconds a connection can be idle (default: 300)
    - pool_wait_timeout: Maximum seconds to wait for a connection (default: 30)
    """
    drivername: str = 'postgresql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    appname: str = None
    codecs: tuple[EnumCodec, ...] = ()
    # Connection pooling parameters
    use_pool: bool = False
    pool_max_connections: int = 5
    pool_max_idle_time: int = 300
    pool_wait_timeout: int = 30

    def __post_init__(self):
        if self.drivername != 'postgresql':
            raise ValueError('drivername must be one of: [\'postgresql\']')
        self.appname = self.appname or scriptname() or 'python_console'
        self.codecs = tuple(self.codecs or ())
        for codec in self.codecs:
            if not isinstance(codec, EnumCodec):
                raise ValueError(f'codecs must be EnumCodec instances, got {codec!r}')
        for field in REQUIRED_OPTIONS:
            if not getattr(self, field):
                raise ValueError(f'field {field} cannot be None or 0')
