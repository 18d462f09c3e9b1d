"""ovpnctl: control plane for an OpenVPN-style client."""

__version__ = "0.1.0"
