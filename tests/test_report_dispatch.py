"""Tests for pipeline/digestlib/report_dispatch.py."""

# Standard Library
import os
import sys

import pytest
import requests

# add pipeline directory to path for digestlib imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "pipeline"))

from digestlib import report_dispatch


#============================================
class FakeResponse:
	def __init__(self, status_code=200, payload=None, text=""):
		self.status_code = status_code
		self._payload = payload
		self.text = text

	def json(self):
		if self._payload is None:
			raise ValueError("no json")
		return self._payload


#============================================
def install_fake_post(monkeypatch, response=None, error=None):
	posts = []

	def fake_post(url, json=None, timeout=None):
		posts.append({"url": url, "json": json, "timeout": timeout})
		if error is not None:
			raise error
		return response

	monkeypatch.setattr(report_dispatch.requests, "post", fake_post)
	return posts


#============================================
def test_unconfigured_prints_report(capsys, monkeypatch) -> None:
	"""
	Without a webhook the report goes to stdout and nothing is posted.
	"""
	posts = install_fake_post(monkeypatch, FakeResponse())
	sent = report_dispatch.dispatch_report("weekly text", "")
	assert sent is False
	assert posts == []
	assert "weekly text" in capsys.readouterr().out


#============================================
def test_configured_posts_lark_payload(monkeypatch) -> None:
	"""
	The webhook receives a text message payload.
	"""
	posts = install_fake_post(monkeypatch, FakeResponse(200, {"code": 0, "msg": "success"}))
	sent = report_dispatch.dispatch_report("weekly text", "https://hooks.example.com/bot", timeout_seconds=12)
	assert sent is True
	assert posts[0]["url"] == "https://hooks.example.com/bot"
	assert posts[0]["json"] == {"msg_type": "text", "content": {"text": "weekly text"}}
	assert posts[0]["timeout"] == 12


#============================================
def test_http_error_raises(monkeypatch) -> None:
	"""
	Non-2xx responses fail the dispatch.
	"""
	install_fake_post(monkeypatch, FakeResponse(500, None, text="oops"))
	with pytest.raises(report_dispatch.DispatchError):
		report_dispatch.dispatch_report("text", "https://hooks.example.com/bot")


#============================================
def test_rejected_message_code_raises(monkeypatch) -> None:
	"""
	A 200 response with a non-zero code is still a failure.
	"""
	install_fake_post(monkeypatch, FakeResponse(200, {"code": 19001, "msg": "param invalid"}))
	with pytest.raises(report_dispatch.DispatchError) as excinfo:
		report_dispatch.dispatch_report("text", "https://hooks.example.com/bot")
	assert "19001" in str(excinfo.value)


#============================================
def test_network_error_raises(monkeypatch) -> None:
	"""
	Transport errors surface as DispatchError.
	"""
	install_fake_post(monkeypatch, error=requests.ConnectionError("refused"))
	with pytest.raises(report_dispatch.DispatchError):
		report_dispatch.dispatch_report("text", "https://hooks.example.com/bot")


#============================================
def test_non_json_success_body_is_accepted(monkeypatch) -> None:
	"""
	Plain-text 2xx bodies count as delivered.
	"""
	install_fake_post(monkeypatch, FakeResponse(200, None, text="ok"))
	assert report_dispatch.dispatch_report("text", "https://hooks.example.com/bot") is True
