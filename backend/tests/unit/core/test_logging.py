"""
Unit tests for logging helpers
"""
import json
import logging
from unittest.mock import patch

from app.core.logging_config import (
    JSONFormatter,
    logger,
    mask_email,
    set_request_id,
)


class TestMaskEmail:

    def test_keeps_domain_and_first_two_characters(self):
        assert mask_email('budi.santoso@polban.ac.id') == 'bu***@polban.ac.id'

    def test_non_email_identifiers_are_unchanged(self):
        assert mask_email('211524001') == '211524001'
        assert mask_email(None) is None
        assert mask_email('') == ''


class TestAuthEvents:

    def test_failed_event_is_a_warning_with_masked_email(self):
        with patch.object(logger, 'log') as mock_log:
            logger.log_auth_event('forgot_password', success=False,
                                  identifier='siti.rahayu@polban.ac.id', reason='unknown email')

        level, message = mock_log.call_args.args
        extra = mock_log.call_args.kwargs['extra']
        assert level == logging.WARNING
        assert 'siti.rahayu' not in message
        assert 'si***@polban.ac.id' in message
        assert extra['auth_identifier'] == 'si***@polban.ac.id'
        assert extra['failure_reason'] == 'unknown email'

    def test_successful_event_is_info(self):
        with patch.object(logger, 'log') as mock_log:
            logger.log_auth_event('login', success=True, identifier='211524001')

        level, message = mock_log.call_args.args
        assert level == logging.INFO
        assert message == '[Auth] login ok for 211524001'


class TestAdminActions:

    def test_event_type_names_the_action(self):
        with patch.object(logger, 'info') as mock_info:
            logger.log_admin_action('admin', 'deleted', '211524001')

        extra = mock_info.call_args.kwargs['extra']
        assert extra['event_type'] == 'admin_student_deleted'
        assert extra['student_nim'] == '211524001'


class TestJSONFormatter:

    def test_includes_request_id_and_extras(self):
        record = logging.makeLogRecord({
            'name': 'siakad',
            'levelname': 'INFO',
            'msg': 'hello',
            'event_type': 'http_request',
        })
        set_request_id('abc123')
        try:
            entry = json.loads(JSONFormatter().format(record))
        finally:
            set_request_id('')

        assert entry['message'] == 'hello'
        assert entry['request_id'] == 'abc123'
        assert entry['event_type'] == 'http_request'
