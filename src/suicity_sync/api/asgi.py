"""ASGI entrypoint for the registry sync admin API."""

from suicity_sync.api.app import create_app
from suicity_sync.containers import build_container

app = create_app(build_container())
