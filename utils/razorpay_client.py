"""Minimal Razorpay refunds client.

Only the call the settlement flow needs: refund a captured payment.
Docs: POST /v1/payments/{payment_id}/refund (amount in paise, Basic auth
with key id/secret).
"""

from __future__ import annotations

import base64
import json
import urllib.error
import urllib.request
from decimal import Decimal

from flask import current_app


class RazorpayError(Exception):
    def __init__(self, message: str, *, status: int | None = None, payload: dict | None = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload or {}


def to_paise(amount) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal('1')))


class RazorpayClient:
    def __init__(self, key_id: str, key_secret: str, *, api_base: str = 'https://api.razorpay.com/v1', timeout: int = 20):
        self.key_id = key_id
        self.key_secret = key_secret
        self.api_base = api_base.rstrip('/')
        self.timeout = timeout

    @classmethod
    def from_config(cls, config=None) -> 'RazorpayClient':
        config = config if config is not None else current_app.config
        return cls(
            config.get('RAZORPAY_KEY_ID', ''),
            config.get('RAZORPAY_KEY_SECRET', ''),
            api_base=config.get('RAZORPAY_API_BASE', 'https://api.razorpay.com/v1'),
            timeout=int(config.get('RAZORPAY_TIMEOUT_SECONDS', 20)),
        )

    def _request(self, path: str, *, payload: dict | None = None) -> tuple[int, dict]:
        if not self.key_id or not self.key_secret:
            raise RazorpayError('Razorpay is not configured (RAZORPAY_KEY_ID/RAZORPAY_KEY_SECRET)')

        auth = base64.b64encode(f'{self.key_id}:{self.key_secret}'.encode('utf-8')).decode('ascii')
        data = json.dumps(payload).encode('utf-8') if payload is not None else None
        req = urllib.request.Request(
            f'{self.api_base}{path}',
            method='POST',
            data=data,
            headers={
                'accept': 'application/json',
                'content-type': 'application/json',
                'authorization': f'Basic {auth}',
            },
        )

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                body = resp.read().decode('utf-8')
                return resp.status, (json.loads(body) if body else {})
        except urllib.error.HTTPError as e:
            try:
                err_body = e.read().decode('utf-8')
                err_json = json.loads(err_body) if err_body else {}
            except (ValueError, UnicodeDecodeError):
                err_json = {}
            error = err_json.get('error') if isinstance(err_json.get('error'), dict) else {}
            raise RazorpayError(
                error.get('description') or f'Razorpay returned HTTP {e.code}',
                status=e.code,
                payload=err_json,
            ) from e
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            raise RazorpayError(f'Razorpay request failed: {e}') from e

    def refund_payment(self, payment_id: str, *, amount, notes: dict | None = None) -> dict:
        """Refund `amount` (rupees) of a captured payment. Returns the refund entity."""
        status, data = self._request(
            f'/payments/{payment_id}/refund',
            payload={'amount': to_paise(amount), 'notes': notes or {}},
        )
        if not isinstance(data, dict) or not data.get('id'):
            raise RazorpayError('Invalid Razorpay response', status=status, payload=data if isinstance(data, dict) else {})
        return data
