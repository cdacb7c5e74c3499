"""Tests for annuity reminder e-mails."""

import smtplib
from datetime import date
from unittest.mock import MagicMock, patch

from patent_vault.config import SmtpConfig
from patent_vault.models import Patent
from patent_vault.notifier import EmailNotifier, render_annuity_reminder


def make_smtp_config(**kwargs) -> SmtpConfig:
    defaults = {
        "enabled": True,
        "host": "smtp.test.com",
        "port": 587,
        "use_tls": True,
        "user": "vault@test.com",
        "password": "secret",
        "recipients": ["ip-team@test.com"],
    }
    defaults.update(kwargs)
    return SmtpConfig(**defaults)


def make_patent(**kwargs) -> Patent:
    defaults = {
        "name": "無線充電裝置",
        "app_number": "112001",
        "pub_number": "I800123",
        "annuity_date": date(2026, 3, 20),
        "annuity_year": 4,
        "notification_emails": ["owner@test.com"],
        "link": "https://example.com/I800123",
    }
    defaults.update(kwargs)
    return Patent(**defaults)


def test_render_annuity_reminder():
    subject, html = render_annuity_reminder(make_patent(), today=date(2026, 3, 1))
    assert subject == "【年費提醒】無線充電裝置 — 年費到期日 2026-03-20"
    assert "112001" in html
    assert "I800123" in html
    assert "2026-03-20" in html
    assert "剩餘 19 天" in html
    assert "deadline-urgent" in html
    assert "第 4 年" in html
    assert "https://example.com/I800123" in html


def test_render_without_annuity_date():
    subject, html = render_annuity_reminder(make_patent(annuity_date=None), today=date(2026, 3, 1))
    assert subject == "【年費提醒】無線充電裝置"
    assert "未設定" in html


def test_render_overdue():
    _, html = render_annuity_reminder(make_patent(), today=date(2026, 4, 1))
    assert "已逾期" in html


@patch("patent_vault.notifier.smtplib.SMTP")
def test_send_to_patent_recipients(mock_smtp_cls):
    mock_server = MagicMock()
    mock_smtp_cls.return_value = mock_server

    notifier = EmailNotifier(make_smtp_config())
    result = notifier.send_annuity_reminder(make_patent(), today=date(2026, 3, 1))

    assert result is True
    mock_smtp_cls.assert_called_once_with("smtp.test.com", 587)
    mock_server.starttls.assert_called_once()
    mock_server.login.assert_called_once_with("vault@test.com", "secret")
    args = mock_server.sendmail.call_args[0]
    assert args[0] == "vault@test.com"
    assert args[1] == ["owner@test.com"]
    mock_server.quit.assert_called_once()


@patch("patent_vault.notifier.smtplib.SMTP")
def test_send_falls_back_to_config_recipients(mock_smtp_cls):
    mock_server = MagicMock()
    mock_smtp_cls.return_value = mock_server

    notifier = EmailNotifier(make_smtp_config())
    notifier.send_annuity_reminder(make_patent(notification_emails=[]), today=date(2026, 3, 1))

    assert mock_server.sendmail.call_args[0][1] == ["ip-team@test.com"]


@patch("patent_vault.notifier.smtplib.SMTP")
def test_no_tls(mock_smtp_cls):
    mock_server = MagicMock()
    mock_smtp_cls.return_value = mock_server

    notifier = EmailNotifier(make_smtp_config(use_tls=False))
    notifier.send_annuity_reminder(make_patent())

    mock_server.starttls.assert_not_called()


@patch("patent_vault.notifier.smtplib.SMTP")
def test_disabled_does_not_send(mock_smtp_cls):
    notifier = EmailNotifier(make_smtp_config(enabled=False))
    assert notifier.send_annuity_reminder(make_patent()) is True
    mock_smtp_cls.assert_not_called()


@patch("patent_vault.notifier.smtplib.SMTP")
def test_no_recipients(mock_smtp_cls):
    notifier = EmailNotifier(make_smtp_config(recipients=[]))
    assert notifier.send_annuity_reminder(make_patent(notification_emails=[])) is False
    mock_smtp_cls.assert_not_called()


@patch("patent_vault.notifier.smtplib.SMTP")
def test_smtp_error_returns_false(mock_smtp_cls):
    mock_server = MagicMock()
    mock_smtp_cls.return_value = mock_server
    mock_server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

    notifier = EmailNotifier(make_smtp_config())
    assert notifier.send_annuity_reminder(make_patent()) is False
