import pytest
import requests

from utils.config import GatewaySettings
from utils.smspro_client import CONTENT_TYPE, SmsProClient, build_client, build_envelope


class StubResponse:
    def __init__(self, status_code=200, text="<SendSMSResult>OK</SendSMSResult>"):
        self.status_code = status_code
        self.text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error", response=self)


class StubSession:
    def __init__(self, response=None):
        self.response = response or StubResponse()
        self.posts = []

    def post(self, url, data=None, headers=None, timeout=None):
        self.posts.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        return self.response


def _settings(**overrides):
    values = {"username": "user", "password": "pw"}
    values.update(overrides)
    return GatewaySettings(**values)


def test_envelope_carries_send_sms_fields():
    envelope = build_envelope("bancoalime", "user", "pw", "351912345678", "Hello")

    assert envelope.startswith("<soap12:Envelope ")
    assert 'xmlns:soap12="http://www.w3.org/2003/05/soap-envelope"' in envelope
    assert '<SendSMS xmlns="http://www.outsystems.com">' in envelope
    assert "<TenantName>bancoalime</TenantName>" in envelope
    assert "<strUsername>user</strUsername>" in envelope
    assert "<strPassword>pw</strPassword>" in envelope
    assert "<MsisdnList>351912345678</MsisdnList>" in envelope
    assert "<strMessage>Hello</strMessage>" in envelope


def test_envelope_escapes_markup_in_message():
    envelope = build_envelope(
        "bancoalime", "user", "pw", "351912345678", "Tom & Jerry </strMessage><x>"
    )

    assert "<strMessage>Tom &amp; Jerry &lt;/strMessage&gt;&lt;x&gt;</strMessage>" in envelope
    assert envelope.count("</strMessage>") == 1


def test_send_posts_one_soap_request():
    session = StubSession()
    client = SmsProClient(_settings(), session=session)

    result = client.send("351912345678", "Olá")

    assert result == "<SendSMSResult>OK</SendSMSResult>"
    assert len(session.posts) == 1
    post = session.posts[0]
    assert post["url"] == "https://smspro.nos.pt/smspro/smsprows.asmx"
    assert post["headers"]["Content-Type"] == CONTENT_TYPE == 'text/xml;charset="utf-8"'
    assert post["headers"]["SOAPAction"] == "https://smspro.nos.pt/smspro/smsprows.asmx?op=SendSMS"
    assert post["timeout"] is None
    assert "<strMessage>Olá</strMessage>".encode("utf-8") in post["data"]


def test_send_uses_configured_timeout():
    session = StubSession()
    client = SmsProClient(_settings(timeout=15.0), session=session)

    client.send("351912345678", "Hello")

    assert session.posts[0]["timeout"] == 15.0


def test_gateway_error_status_is_raised():
    session = StubSession(StubResponse(status_code=500, text="soap:Fault"))
    client = SmsProClient(_settings(), session=session)

    with pytest.raises(requests.HTTPError):
        client.send("351912345678", "Hello")


def test_build_client_reads_environment(monkeypatch):
    monkeypatch.setenv("SMSProUsername", "user")
    monkeypatch.setenv("SMSProPassword", "pw")
    monkeypatch.setenv("SMSPRO_TENANT", "othertenant")
    monkeypatch.delenv("SMSPRO_URL", raising=False)
    monkeypatch.delenv("SMSPRO_TIMEOUT_SECONDS", raising=False)

    client = build_client()

    assert client.settings.username == "user"
    assert client.settings.tenant == "othertenant"
    assert client.settings.url == "https://smspro.nos.pt/smspro/smsprows.asmx"
    assert client.settings.timeout is None


def test_build_client_requires_credentials(monkeypatch):
    monkeypatch.delenv("SMSProUsername", raising=False)
    monkeypatch.delenv("SMSProPassword", raising=False)

    with pytest.raises(RuntimeError, match="SMSProUsername, SMSProPassword"):
        build_client()
