"""Entrypoint: python -m event_subscriber"""
from __future__ import annotations

from event_subscriber.workers.subscriber import main

if __name__ == "__main__":
    main()
