"""Rendezvous core -- errors, logging and settings shared by every module.

Architecture::

    errors.py      Structured error hierarchy (RendezvousError, StorageError, ...)
    logging.py     structlog configuration + get_logger
    settings.py    RendezvousSettings (pydantic-settings, RENDEZVOUS_ env prefix)
"""
