from unittest.mock import MagicMock, patch

import pytest
import requests

from relay_client import RelayClient


def _resp(body, status=200):
    r = MagicMock()
    r.json.return_value = body
    r.status_code = status
    r.ok = status < 400
    r.raise_for_status.side_effect = requests.HTTPError(str(status)) if status >= 400 else None
    return r


def test_base_url_from_env():
    with patch.dict("os.environ", {"RELAY_URL": "http://relay:3001/"}):
        assert RelayClient().base_url == "http://relay:3001"


def test_store_transaction_sends_prefixed_hex():
    with patch("relay_client.requests.post", return_value=_resp({"success": True, "sequence_number": 5})) as post:
        c = RelayClient("http://relay")
        out = c.store_transaction("tx1", b"\xaa\xbb")
    assert out["sequence_number"] == 5
    post.assert_called_once()
    assert post.call_args.args[0] == "http://relay/transaction"
    assert post.call_args.kwargs["json"] == {"transaction_id": "tx1", "bcs_hex": "0xaabb"}


def test_store_signature_accepts_hex_string():
    with patch("relay_client.requests.post", return_value=_resp({"success": True})) as post:
        RelayClient("http://relay").store_signature("tx1", "0xdead")
    assert post.call_args.kwargs["json"]["signature_hex"] == "0xdead"


def test_relay_failures_are_returned_not_raised():
    body = {"success": False, "error_code": "not_found", "message": "Transaction not found"}
    with patch("relay_client.requests.get", return_value=_resp(body, 404)) as get:
        out = RelayClient("http://relay").get_transaction("a/b")
    assert out == body
    assert get.call_args.args[0] == "http://relay/transaction/a%2Fb"


def test_non_envelope_errors_raise():
    with patch("relay_client.requests.get", return_value=_resp({"detail": "Not Found"}, 404)):
        with pytest.raises(requests.HTTPError):
            RelayClient("http://relay").get_transaction("x")


def test_health_handles_connection_errors():
    with patch("relay_client.requests.get", side_effect=requests.ConnectionError("down")):
        assert RelayClient("http://relay").health() is False
    with patch("relay_client.requests.get", return_value=_resp({"ok": True})):
        assert RelayClient("http://relay").health() is True
