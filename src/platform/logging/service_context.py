"""
Service context for log lines.

Identifies the emitting process as `{service}@{env}:{instance}` so that logs from
several stateless API processes can be told apart.
"""

from functools import lru_cache
import os
import socket


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'event-ticket-engine')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')
    instance = os.getenv('HOSTNAME') or f'{socket.gethostname()}-{os.getpid()}'
    return f'{service_name}@{deploy_env}:{instance}'
