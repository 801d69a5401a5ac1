"""Tests for the Inference Service HTTP client."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest
from services.inference_client import InferenceClient, build_appointment_instruction


def mock_session(payload=None, error=None):
    """aiohttp.ClientSession stand-in returning ``payload`` from one POST."""
    response = MagicMock()
    response.raise_for_status = MagicMock(side_effect=error)
    response.json = AsyncMock(return_value=payload)

    post_context = MagicMock()
    post_context.__aenter__ = AsyncMock(return_value=response)
    post_context.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.post = MagicMock(return_value=post_context)

    session_context = MagicMock()
    session_context.__aenter__ = AsyncMock(return_value=session)
    session_context.__aexit__ = AsyncMock(return_value=False)
    return session_context, session


def test_instruction_lists_catalogs(catalog, professional):
    instruction = build_appointment_instruction(catalog, [professional], today=date(2030, 6, 1))

    assert 'Manicure' in instruction
    assert 'Ana Souza' in instruction
    assert 'sábado, 01/06/2030' in instruction


@pytest.mark.asyncio
async def test_extract_appointment(catalog, professional):
    parsed = {'clientName': 'Maria', 'services': ['Manicure'], 'date': 'amanhã', 'time': '14:00'}
    session_context, session = mock_session(payload=parsed)
    client = InferenceClient(url='http://inference.local/extract', api_key='secret', timeout=5)

    with patch('services.inference_client.aiohttp.ClientSession', return_value=session_context):
        result = await client.extract_appointment('Maria amanhã 14h manicure', catalog, [professional])

    assert result == parsed
    args, kwargs = session.post.call_args
    assert args[0] == 'http://inference.local/extract'
    assert kwargs['headers']['Authorization'] == 'Bearer secret'
    assert kwargs['json']['task'] == 'extract_appointment'
    assert kwargs['json']['prompt'] == 'Maria amanhã 14h manicure'
    assert kwargs['timeout'].total == 5


@pytest.mark.asyncio
async def test_extract_payment_value():
    session_context, session = mock_session(payload={'value': 45.0})
    client = InferenceClient(url='http://inference.local/extract', api_key='secret')

    with patch('services.inference_client.aiohttp.ClientSession', return_value=session_context):
        result = await client.extract_payment_value('aW1hZ2U=', mime_type='image/png')

    assert result == {'value': 45.0}
    payload = session.post.call_args.kwargs['json']
    assert payload['task'] == 'extract_payment_value'
    assert payload['image'] == {'data': 'aW1hZ2U=', 'mime_type': 'image/png'}


@pytest.mark.asyncio
async def test_http_error_is_raised():
    session_context, _ = mock_session(error=aiohttp.ClientError('503 Service Unavailable'))
    client = InferenceClient(url='http://inference.local/extract', api_key='secret')

    with patch('services.inference_client.aiohttp.ClientSession', return_value=session_context):
        with pytest.raises(aiohttp.ClientError):
            await client.extract_payment_value('aW1hZ2U=')
