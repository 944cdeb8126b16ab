#!/usr/bin/env python3
"""
Tests for session validation, login and storage-state persistence.
"""
import asyncio
import dataclasses

import pytest

from bidder.errors import SessionExpiredError
from bidder.models import Credentials
from bidder.session import SessionGate

LOGGED_IN = ".order, .orderA"


def login_page(fake):
    """Login form that lands on the listing once submitted."""
    page = fake.Page(url="about:blank")
    email = fake.Element()
    password = fake.Element()

    def submit():
        page.url = fake.LISTING_URL
        password.visible = False
        page.add(LOGGED_IN, fake.Element("Order"))

    page.add("input[name='email']", email)
    page.add("input[name='password']", password)
    page.add("button[type='submit']", fake.Element("Log in", on_click=submit))
    return page, email, password


def test_login_url_detection():
    assert SessionGate.on_login_page("https://studybay.com/login")
    assert SessionGate.on_login_page("https://studybay.com/auth/signin?next=/")
    assert not SessionGate.on_login_page("https://studybay.com/order/search")
    assert not SessionGate.on_login_page("")


def test_listing_content_means_valid(fake, fast_config):
    page = fake.Page()
    page.add(LOGGED_IN, fake.Element("Order"))
    assert asyncio.run(SessionGate(fast_config).is_valid(page))


def test_login_page_is_invalid(fake, fast_config):
    page = fake.Page(url="https://studybay.com/login")
    assert not asyncio.run(SessionGate(fast_config).is_valid(page, navigate=False))


def test_visible_password_field_is_invalid(fake, fast_config):
    page = fake.Page()
    page.add("input[type='password']", fake.Element())
    assert not asyncio.run(SessionGate(fast_config).is_valid(page))


def test_no_login_form_counts_as_logged_in(fake, fast_config):
    page = fake.Page()
    assert asyncio.run(SessionGate(fast_config).is_valid(page))


def test_validation_navigates_to_listing(fake, fast_config):
    page = fake.Page(url="about:blank")
    page.add(LOGGED_IN, fake.Element("Order"))
    assert asyncio.run(SessionGate(fast_config).is_valid(page))
    assert page.gotos == [fast_config.listing_url]


def test_auto_login_saves_session(fake, fast_config, tmp_path):
    path = str(tmp_path / "session.json")
    config = dataclasses.replace(fast_config, storage_state_path=path)
    page, email, password = login_page(fake)
    context = fake.Context()
    gate = SessionGate(config, Credentials("writer@example.com", "s3cret"))

    asyncio.run(gate.establish(page, context))

    assert page.gotos[0] == config.login_url
    assert email.value == "writer@example.com"
    assert password.value == "s3cret"
    assert context.saved == [path]


def test_manual_login_detected(fake, fast_config, tmp_path):
    path = str(tmp_path / "session.json")
    config = dataclasses.replace(fast_config, storage_state_path=path)
    page = fake.Page()
    page.add(LOGGED_IN, fake.Element("Order"))
    context = fake.Context()

    asyncio.run(SessionGate(config).establish(page, context))

    assert context.saved == [path]


def test_manual_login_times_out(fake, fast_config):
    config = dataclasses.replace(fast_config, manual_login_timeout_s=0.05)
    page = fake.Page(url="https://studybay.com/login")

    with pytest.raises(SessionExpiredError):
        asyncio.run(SessionGate(config).establish(page, fake.Context()))


def test_unrecognised_login_form_falls_back_to_manual(fake, fast_config):
    config = dataclasses.replace(fast_config, manual_login_timeout_s=0.05)
    page = fake.Page(url="about:blank")
    gate = SessionGate(config, Credentials("writer@example.com", "s3cret"))

    with pytest.raises(SessionExpiredError):
        asyncio.run(gate.establish(page, fake.Context()))
    assert page.gotos == [config.login_url]


def test_storage_state_load(fast_config, tmp_path):
    path = tmp_path / "session.json"
    config = dataclasses.replace(fast_config, storage_state_path=str(path))
    assert SessionGate(config).load() == {}
    path.write_text("{}")
    assert SessionGate(config).load() == {"storage_state": str(path)}


def test_failed_save_is_not_fatal(fake, fast_config):
    class BrokenContext:
        async def storage_state(self, path=None):
            raise fake.PlaywrightError("Target closed")

    config = dataclasses.replace(fast_config, storage_state_path="session.json")
    assert asyncio.run(SessionGate(config).save(BrokenContext())) is False
    assert asyncio.run(SessionGate(fast_config).save(BrokenContext())) is False
