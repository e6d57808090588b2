import io
import json
import logging

import pytest

from phabtask.logging import StructuredLogger, configure_logging, get_logger


def _lines(stream: io.StringIO) -> list[str]:
    return [line for line in stream.getvalue().splitlines() if line]


def test_structured_logger_json_format():
    stream = io.StringIO()
    logger = StructuredLogger(name='test-json', json_logging=True, level='INFO', stream=stream)
    logger.log_operation('lookup', names=2)

    log_data = json.loads(_lines(stream)[0])
    assert log_data['level'] == 'INFO'
    assert log_data['operation'] == 'lookup'
    assert log_data['names'] == 2
    assert 'timestamp' in log_data


def test_structured_logger_regular_format():
    stream = io.StringIO()
    logger = StructuredLogger(name='test-plain', level='INFO', stream=stream)
    logger.log_operation('submit')
    out = stream.getvalue()
    assert 'Operation: submit' in out
    assert 'INFO' in out


def test_warning_level_hides_info():
    stream = io.StringIO()
    logger = StructuredLogger(name='test-warning', level='WARNING', stream=stream)
    logger.info('chatty')
    logger.warning('important')
    assert 'chatty' not in stream.getvalue()
    assert 'important' in stream.getvalue()


def test_default_level_shows_info():
    stream = io.StringIO()
    logger = StructuredLogger(name='test-default', stream=stream)
    logger.info('Sending to conduit ...')
    assert 'Sending to conduit ...' in stream.getvalue()


def test_timed_operation_honours_level():
    stream = io.StringIO()
    logger = StructuredLogger(name='test-timed-debug', json_logging=True, level='INFO', stream=stream)

    with logger.timed_operation('resolve', level=logging.DEBUG):
        pass
    assert stream.getvalue() == ''

    with pytest.raises(RuntimeError):
        with logger.timed_operation('submit', level=logging.DEBUG):
            raise RuntimeError('arc went away')
    (only,) = _lines(stream)
    assert json.loads(only)['level'] == 'ERROR'


def test_timed_operation_context_manager():
    stream = io.StringIO()
    logger = StructuredLogger(name='test-timed', json_logging=True, level='INFO', stream=stream)

    with logger.timed_operation('resolve', field='ccPHIDs'):
        pass

    start_log, perf_log = (json.loads(line) for line in _lines(stream))
    assert start_log['operation'] == 'resolve_start'
    assert perf_log['operation'] == 'resolve'
    assert perf_log['field'] == 'ccPHIDs'
    assert 'duration_ms' in perf_log


def test_timed_operation_logs_and_reraises():
    stream = io.StringIO()
    logger = StructuredLogger(name='test-fail', json_logging=True, level='INFO', stream=stream)

    with pytest.raises(RuntimeError):
        with logger.timed_operation('submit'):
            raise RuntimeError('arc went away')

    last = json.loads(_lines(stream)[-1])
    assert last['level'] == 'ERROR'
    assert last['error'] == 'arc went away'


def test_configure_logging_replaces_global():
    stream = io.StringIO()
    configured = configure_logging(json_logging=True, level='DEBUG', stream=stream)
    assert get_logger() is configured
    get_logger().debug('hello', step='parse')
    assert json.loads(_lines(stream)[0])['step'] == 'parse'
