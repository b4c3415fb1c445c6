# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Remote transport for qjob.

Defines the `Transport` interface through which all remote commands are
executed and all files are transferred, the `CredentialProvider` holding
the credentials for one session, and `SSHTransport`, the fabric-based
implementation talking to a cluster head node.
"""

from .credentials import CredentialProvider, Credentials
from .interface import Transport
from .ssh import SSHTransport

__all__ = [
    "CredentialProvider",
    "Credentials",
    "SSHTransport",
    "Transport",
]
