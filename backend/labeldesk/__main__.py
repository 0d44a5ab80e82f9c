"""Allows `python -m labeldesk`."""

from labeldesk.main import run

run()
