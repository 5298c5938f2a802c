from urllib.parse import parse_qs, urlparse

import pytest

from goaltracker.services import sharing


GOAL = {"id": 4, "title": "Run 5k", "goal_type": "weekly", "total_progress": 1, "target_value": 3}


def test_share_text_templates():
    assert sharing.share_text(GOAL) == (
        '📅 Weekly Goal Progress: "Run 5k" - 33% achieved this week! Consistency is key to success. '
        "#WeeklyGoals #Progress #Achievement"
    )
    other = sharing.share_text({**GOAL, "goal_type": "someday"}, 50)
    assert other.startswith('🎯 Goal Progress: "Run 5k" - 50% complete!')


def test_share_urls():
    fb = urlparse(sharing.share_url("facebook", "http://app.test", "hi"))
    assert fb.netloc == "www.facebook.com"
    assert parse_qs(fb.query) == {"u": ["http://app.test"], "quote": ["hi"]}

    tw = urlparse(sharing.share_url("twitter", "http://app.test", "hi", ["#Goals", "Habits"]))
    assert parse_qs(tw.query)["hashtags"] == ["Goals,Habits"]

    li = urlparse(sharing.share_url("linkedin", "http://app.test", "hi"))
    assert parse_qs(li.query)["summary"] == ["hi"]

    assert sharing.share_url("instagram", "http://app.test", "hi") is None
    with pytest.raises(ValueError):
        sharing.share_url("myspace", "http://app.test", "hi")


def test_invite_link_round_trip():
    link = sharing.invite_link("http://app.test/", {"id": 7, "name": "Sam"}, [4], {"shareProgress": True})
    assert link.startswith("http://app.test/partner-invite/")
    data = sharing.decode_invite(link.rsplit("/", 1)[1])
    assert data["userId"] == 7
    assert data["userName"] == "Sam"
    assert data["goals"] == [4]
    assert data["timestamp"] > 0


@pytest.mark.parametrize("token", ["not-base64!!", "e30=", ""])
def test_decode_invite_rejects_garbage(token):
    with pytest.raises(ValueError):
        sharing.decode_invite(token)


def test_invite_email():
    subject, body = sharing.invite_email("Sam", "http://app.test/partner-invite/x")
    assert subject == "Sam invited you to be their accountability partner"
    assert "http://app.test/partner-invite/x" in body
