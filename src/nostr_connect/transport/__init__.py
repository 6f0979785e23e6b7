from nostr_connect.transport.codec import TransportCodec
from nostr_connect.transport.envelope import build_request, parse_request, parse_response, parse_wallet_response

__all__ = ["TransportCodec", "build_request", "parse_request", "parse_response", "parse_wallet_response"]
