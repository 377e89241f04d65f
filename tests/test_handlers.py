"""
Tests for handlers/ — request/response shapes over a temp SQLite DB.
"""
from datetime import datetime, timedelta, timezone

import pytest

import database.database as db
import handlers.cards as hand_card
import handlers.review as hand_review
import handlers.settings as hand_settings

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


# ── Fixture ───────────────────────────────────────────────────

@pytest.fixture()
def user(tdb):
    db.create_user('u1', 'u1@example.com', 'User One')
    return 'u1'


def _add_card(user_id, front='huis', back='house', category=None, now=NOW):
    resp = hand_card.create_card(user_id, {'front': front, 'back': back, 'category': category}, now=now)
    assert resp['status'] == 201
    return resp['body']


# ── Submit review ─────────────────────────────────────────────

class TestSubmitReview:
    def test_response_shape(self, user):
        item_id = _add_card(user)['review_items'][0]['id']
        resp = hand_review.submit_review(user, {'review_item_id': item_id, 'grade': 3, 'duration_ms': 900}, now=NOW)
        assert resp['status'] == 200
        assert resp['body'] == {
            'next_review': '2024-03-01T12:10:00.000Z',
            'interval_days': pytest.approx(10 / 1440),
            'state': 'LEARNING',
        }

    def test_graduation_reports_days(self, user):
        item_id = _add_card(user)['review_items'][0]['id']
        resp = hand_review.submit_review(user, {'review_item_id': item_id, 'grade': 4, 'duration_ms': 0}, now=NOW)
        assert resp['body']['interval_days'] == 4
        assert resp['body']['state'] == 'REVIEW'
        assert resp['body']['next_review'] == '2024-03-05T12:00:00.000Z'

    def test_sequential_grades_build_on_each_other(self, user):
        item_id = _add_card(user)['review_items'][0]['id']
        hand_review.submit_review(user, {'review_item_id': item_id, 'grade': 3, 'duration_ms': 1}, now=NOW)
        resp = hand_review.submit_review(
            user, {'review_item_id': item_id, 'grade': 3, 'duration_ms': 1}, now=NOW + timedelta(minutes=10)
        )
        assert resp['body']['state'] == 'REVIEW'
        assert resp['body']['interval_days'] == 1

    @pytest.mark.parametrize('grade', [1, 5, '3', None])
    def test_invalid_grade(self, user, grade):
        item_id = _add_card(user)['review_items'][0]['id']
        resp = hand_review.submit_review(user, {'review_item_id': item_id, 'grade': grade, 'duration_ms': 0})
        assert resp['status'] == 400
        assert resp['body']['code'] == 'INVALID_GRADE'

    def test_negative_duration(self, user):
        item_id = _add_card(user)['review_items'][0]['id']
        resp = hand_review.submit_review(user, {'review_item_id': item_id, 'grade': 3, 'duration_ms': -5})
        assert resp['status'] == 400
        assert resp['body']['code'] == 'INVALID_DURATION'

    def test_missing_body(self, user):
        resp = hand_review.submit_review(user, None)
        assert resp['status'] == 400
        assert resp['body']['code'] == 'MISSING_BODY'

    def test_unknown_item(self, user):
        resp = hand_review.submit_review(user, {'review_item_id': 'nope', 'grade': 3, 'duration_ms': 0})
        assert resp['status'] == 404
        assert resp['body']['code'] == 'NOT_FOUND'

    def test_other_users_item(self, user):
        db.create_user('u2')
        item_id = _add_card('u2')['review_items'][0]['id']
        resp = hand_review.submit_review(user, {'review_item_id': item_id, 'grade': 3, 'duration_ms': 0})
        assert resp['status'] == 403
        assert db.list_review_items('u2')[0].state.value == 'NEW'

    def test_concurrent_write_reports_conflict(self, user, monkeypatch):
        item_id = _add_card(user)['review_items'][0]['id']
        stale_row = db.get_review_item(item_id)
        hand_review.submit_review(user, {'review_item_id': item_id, 'grade': 3, 'duration_ms': 0}, now=NOW)

        # Simulate a second request that read the row before the first one wrote it
        monkeypatch.setattr(db, 'get_review_item', lambda _id: stale_row)
        resp = hand_review.submit_review(user, {'review_item_id': item_id, 'grade': 0, 'duration_ms': 0}, now=NOW)
        assert resp['status'] == 409
        assert resp['body']['code'] == 'CONFLICT'


# ── Queue ─────────────────────────────────────────────────────

class TestGetReviewQueue:
    def test_new_items_listed(self, user):
        _add_card(user)
        resp = hand_review.get_review_queue(user, now=NOW)
        body = resp['body']
        assert resp['status'] == 200
        assert body['stats']['new_count'] == 2
        assert body['stats']['due_count'] == 0
        assert [e['direction'] for e in body['queue']] == ['forward', 'reverse']
        assert body['queue'][0]['front'] == 'huis'
        assert body['queue'][1]['front'] == 'house'

    def test_quota_uses_todays_history(self, user):
        hand_settings.update_settings(user, {'new_cards_per_day': 2})
        first = _add_card(user, 'a', 'b', now=NOW - timedelta(hours=2))
        _add_card(user, 'c', 'd', now=NOW - timedelta(hours=1))

        for entry in first['review_items']:
            hand_review.submit_review(user, {'review_item_id': entry['id'], 'grade': 4, 'duration_ms': 0}, now=NOW)

        body = hand_review.get_review_queue(user, now=NOW)['body']
        assert body['stats']['new_count'] == 0
        assert body['stats']['new_remaining_today'] == 0

    def test_extra_new(self, user):
        hand_settings.update_settings(user, {'new_cards_per_day': 0})
        _add_card(user)
        body = hand_review.get_review_queue(user, {'extra_new': '1'}, now=NOW)['body']
        assert body['stats']['new_count'] == 1

    def test_due_before_new(self, user):
        first = _add_card(user, 'a', 'b', now=NOW - timedelta(hours=1))
        _add_card(user, 'c', 'd', now=NOW)
        item_id = first['review_items'][0]['id']
        hand_review.submit_review(user, {'review_item_id': item_id, 'grade': 0, 'duration_ms': 0},
                                  now=NOW - timedelta(minutes=30))

        body = hand_review.get_review_queue(user, now=NOW)['body']
        assert body['queue'][0]['id'] == item_id
        assert body['stats']['due_count'] == 1
        assert body['stats']['learning_count'] == 1

    def test_disabled_category(self, user):
        hand_settings.update_settings(user, {'disabled_categories': ['Verbs']})
        _add_card(user, 'lopen', 'to walk', category='Verbs')
        _add_card(user, 'huis', 'house', category='Nouns')
        body = hand_review.get_review_queue(user, now=NOW)['body']
        assert {e['category'] for e in body['queue']} == {'Nouns'}

    def test_all_mode(self, user):
        hand_settings.update_settings(user, {'new_cards_per_day': 0})
        _add_card(user)
        body = hand_review.get_review_queue(user, {'all': 'true'}, now=NOW)['body']
        assert len(body['queue']) == 2
        assert body['stats']['new_count'] == 2
        assert body['stats']['new_remaining_today'] == 0

    def test_bad_extra_new(self, user):
        resp = hand_review.get_review_queue(user, {'extra_new': '-1'}, now=NOW)
        assert resp['status'] == 400

    def test_unknown_user_gets_empty_queue(self, tdb):
        resp = hand_review.get_review_queue('ghost', {}, now=NOW)
        assert resp['status'] == 200
        assert resp['body']['queue'] == []
        assert resp['body']['stats']['new_remaining_today'] == db.get_settings('ghost').new_cards_per_day


# ── Previews & reset ──────────────────────────────────────────

class TestPreviewsAndReset:
    def test_previews_for_new_item(self, user):
        item_id = _add_card(user)['review_items'][0]['id']
        body = hand_review.get_interval_previews(user, item_id, now=NOW)['body']
        assert body['previews'] == {'AGAIN': '1m', 'HARD': '1m', 'GOOD': '10m', 'EASY': '4d'}

    def test_reset_daily_reviews(self, user):
        item_id = _add_card(user)['review_items'][0]['id']
        hand_review.submit_review(user, {'review_item_id': item_id, 'grade': 3, 'duration_ms': 0}, now=NOW)
        body = hand_review.reset_daily_reviews(user, now=NOW)['body']
        assert body['deleted_count'] == 1


# ── Settings & cards ──────────────────────────────────────────

class TestSettingsAndCards:
    def test_get_settings(self, user):
        body = hand_settings.get_settings(user)['body']
        assert body['settings']['user_id'] == user
        assert body['settings']['learning_steps'] == [1, 10]

    def test_update_settings_validation(self, user):
        resp = hand_settings.update_settings(user, {'starting_ease': 1.0})
        assert resp['status'] == 400
        assert resp['body']['code'] == 'VALIDATION_ERROR'
        assert resp['body']['details'] == {'field': 'starting_ease', 'value': 1.0}

    def test_update_settings_empty_steps(self, user):
        resp = hand_settings.update_settings(user, {'learning_steps': []})
        assert resp['status'] == 400

    def test_update_settings_scalar_steps(self, user):
        resp = hand_settings.update_settings(user, {'learning_steps': 5})
        assert resp['status'] == 400
        assert resp['body']['details']['field'] == 'learning_steps'

    def test_update_settings_category_string(self, user):
        resp = hand_settings.update_settings(user, {'disabled_categories': 'Verbs'})
        assert resp['status'] == 400
        assert hand_settings.get_settings(user)['body']['settings']['disabled_categories'] == []

    def test_create_card_requires_front(self, user):
        resp = hand_card.create_card(user, {'front': '  ', 'back': 'x'})
        assert resp['status'] == 400
        assert resp['body']['details']['field'] == 'front'

    def test_delete_card(self, user):
        card_id = _add_card(user)['card']['card_id']
        assert hand_card.delete_card(user, card_id)['status'] == 200
        assert db.list_review_items(user) == []
        assert hand_card.delete_card(user, card_id)['status'] == 404
