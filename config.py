from decouple import config

# Queue storage
QUEUE_FILE = config('KARAOKE_QUEUE_FILE', default='queue.txt')

# Web server
HOST = config('KARAOKE_HOST', default='0.0.0.0')
PORT = config('KARAOKE_PORT', default=5000, cast=int)
SERVER_URL = config('KARAOKE_SERVER_URL', default=f'http://127.0.0.1:{PORT}')
MDNS_ENABLED = config('KARAOKE_MDNS', default=True, cast=bool)
MDNS_NAME = config('KARAOKE_MDNS_NAME', default='Karaoke Queue')

# Display timing (seconds)
POLL_INTERVAL = config('KARAOKE_POLL_INTERVAL', default=5.0, cast=float)
IDLE_TIMEOUT = config('KARAOKE_IDLE_TIMEOUT', default=180.0, cast=float)
IDLE_CHECK_INTERVAL = config('KARAOKE_IDLE_CHECK_INTERVAL', default=10.0, cast=float)

# Network timeouts (seconds)
METADATA_TIMEOUT = config('KARAOKE_METADATA_TIMEOUT', default=5.0, cast=float)
REQUEST_TIMEOUT = config('KARAOKE_REQUEST_TIMEOUT', default=10.0, cast=float)

# Auto-DJ
AUTO_DJ_NAME = config('KARAOKE_AUTO_DJ_NAME', default='🤖 Auto-DJ')
CATALOG_FILE = config('KARAOKE_CATALOG_FILE', default='')

LOG_LEVEL = config('KARAOKE_LOG_LEVEL', default='INFO')
LOG_FILE = config('KARAOKE_LOG_FILE', default='karaoke.log')
