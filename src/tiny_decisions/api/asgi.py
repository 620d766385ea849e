"""ASGI entrypoint for the decision wheel API."""

from tiny_decisions.api.app import create_app
from tiny_decisions.containers import build_container

app = create_app(build_container())
