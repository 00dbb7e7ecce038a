"""
Tests for the conversion client and extension tables.
"""

import json

import pytest
import requests

from onlyoffice_bridge.conversion import ConversionClient, can_convert, internal_extension
from onlyoffice_bridge.errors import InternalError, TransportError
from onlyoffice_bridge.models import ConvertOptions

from conftest import make_response

RESULT = {"fileUrl": "http://docserver/cache/out.pdf", "fileType": "pdf", "percent": 100, "endConvert": True, "error": 0, "key": "k1"}


def _options(**overrides):
    values = {"document_url": "http://files/storage/report.docx", "to_ext": "pdf", "document_key": "k1", "title": "report.docx"}
    values.update(overrides)
    return ConvertOptions(**values)


class TestExtensionTables:
    @pytest.mark.parametrize(
        "ext",
        ["doc", "docx", "odt", "rtf", "xls", "xlsx", "ods", "csv", "ppt", "pptx", "odp", "pdf", "txt", "html", "htm"],
    )
    def test_allow_list(self, ext):
        assert can_convert(ext) is True

    @pytest.mark.parametrize("ext", ["xyz", "mht", "djvu", ""])
    def test_outside_allow_list(self, ext):
        assert can_convert(ext) is False

    def test_allow_list_ignores_case(self):
        assert can_convert("DOCX") is True

    @pytest.mark.parametrize(
        "ext,expected",
        [
            ("doc", "docx"),
            ("odt", "docx"),
            ("rtf", "docx"),
            ("xls", "xlsx"),
            ("ods", "xlsx"),
            ("csv", "xlsx"),
            ("ppt", "pptx"),
            ("odp", "pptx"),
        ],
    )
    def test_internal_extension(self, ext, expected):
        assert internal_extension(ext) == expected

    @pytest.mark.parametrize("ext", ["docx", "xlsx", "pptx", "pdf", "xyz"])
    def test_internal_extension_identity(self, ext):
        assert internal_extension(ext) == ext


class TestConvert:
    def test_posts_fixed_payload(self, disabled_tokens, fake_session):
        fake_session.queue(make_response(200, json.dumps(RESULT).encode()))
        client = ConversionClient("http://docserver/", disabled_tokens, timeout=12, session=fake_session)

        result = client.convert(_options(asynchronous=True))

        method, url, kwargs = fake_session.calls[0]
        assert method == "POST"
        assert url == "http://docserver/ConvertService.ashx"
        assert kwargs["timeout"] == 12
        assert kwargs["json"] == {
            "url": "http://files/storage/report.docx",
            "outputtype": "pdf",
            "filetype": "docx",
            "title": "report.docx",
            "key": "k1",
            "async": True,
            "region": "en",
            "embedded": False,
            "canDownload": True,
        }
        assert result.file_url == "http://docserver/cache/out.pdf"
        assert result.end_convert is True
        assert result.percent == 100

    def test_options_accept_wire_async(self):
        options = ConvertOptions.model_validate({"document_url": "http://files/a.docx", "to_ext": "pdf", "async": True})
        assert options.asynchronous is True

    def test_explicit_source_extension_wins(self, disabled_tokens, fake_session):
        fake_session.queue(make_response(200, json.dumps(RESULT).encode()))
        client = ConversionClient("http://docserver", disabled_tokens, session=fake_session)

        client.convert(_options(document_url="http://files/download?id=7", from_ext="odt"))

        assert fake_session.calls[0][2]["json"]["filetype"] == "odt"

    def test_token_signed_over_payload(self, tokens, fake_session):
        fake_session.queue(make_response(200, json.dumps(RESULT).encode()))
        client = ConversionClient("http://docserver", tokens, session=fake_session)

        client.convert(_options())

        body = dict(fake_session.calls[0][2]["json"])
        token = body.pop("token")
        assert tokens.verify(token) == body

    def test_server_error_code_is_returned(self, disabled_tokens, fake_session):
        fake_session.queue(make_response(200, json.dumps({"error": -4}).encode()))
        client = ConversionClient("http://docserver", disabled_tokens, session=fake_session)

        result = client.convert(_options())

        assert result.error == -4
        assert result.end_convert is False

    def test_non_200_raises_with_body(self, disabled_tokens, fake_session):
        fake_session.queue(make_response(503, b"maintenance"))
        client = ConversionClient("http://docserver", disabled_tokens, session=fake_session)

        with pytest.raises(TransportError, match="status 503: maintenance"):
            client.convert(_options())

    def test_connection_failure(self, disabled_tokens, fake_session):
        fake_session.queue(requests.ConnectionError("refused"))
        client = ConversionClient("http://docserver", disabled_tokens, session=fake_session)

        with pytest.raises(TransportError):
            client.convert(_options())

    def test_non_json_answer(self, disabled_tokens, fake_session):
        fake_session.queue(make_response(200, b"<html>oops</html>"))
        client = ConversionClient("http://docserver", disabled_tokens, session=fake_session)

        with pytest.raises(InternalError):
            client.convert(_options())


class TestDownloadFile:
    def test_returns_content(self, disabled_tokens, fake_session):
        fake_session.queue(make_response(200, b"PK\x03\x04"))
        client = ConversionClient("http://docserver", disabled_tokens, session=fake_session)

        assert client.download_file("http://docserver/cache/f.docx") == b"PK\x03\x04"
        assert fake_session.calls[0][:2] == ("GET", "http://docserver/cache/f.docx")

    def test_non_200_raises(self, disabled_tokens, fake_session):
        fake_session.queue(make_response(404))
        client = ConversionClient("http://docserver", disabled_tokens, session=fake_session)

        with pytest.raises(TransportError, match="download failed with status 404"):
            client.download_file("http://docserver/cache/missing.docx")
