import json


# tests/utils.py
class FakeResponse:
    """Just enough of requests.Response for the processor client."""

    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        if text is None:
            text = json.dumps(body) if body is not None else ""
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._body is None:
            return json.loads(self.text)
        return self._body


class RecordingPost:
    """Stand-in for requests.post that records calls and replays responses."""

    def __init__(self, *responses):
        self.responses = list(responses) or [FakeResponse(201, {"id": "ps_1"})]
        self.calls = []

    def __call__(self, url, headers=None, json=None, timeout=None, **kw):
        self.calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        r = self.responses[min(len(self.calls), len(self.responses)) - 1]
        if isinstance(r, Exception):
            raise r
        return r


def install_post(monkeypatch, *responses):
    post = RecordingPost(*responses)
    monkeypatch.setattr("services.payments.checkout_com.requests.post", post)
    return post
