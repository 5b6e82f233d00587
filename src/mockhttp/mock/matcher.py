"""
mockhttp Expected Response Provider

Expectation registry, request matcher and verifier.

Features:
- Exact structural matching on method, path, content type, body and the
  full query parameter set
- Ordered response sequences per expectation ("A on the first call, B on
  the second")
- Multiplicity constraints (exact count, at least once, unbounded)
- Aggregated verification of unmet expectations and unexpected requests
- Thread-safe: one lock per provider guards all bookkeeping
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from .exceptions import UnsatisfiedExpectationException
from .request import FullHttpRequest, HttpRequest, RequestLike, to_full_http_request, to_http_request
from .response import HttpResponse

logger = logging.getLogger("mockhttp.mock.matcher")


@dataclass(frozen=True)
class Multiplicity:
    """
    How many matching calls an expectation requires.

    maximum=None means any number of calls beyond the minimum is accepted,
    reusing the last response once the sequence is exhausted.
    """

    minimum: int
    maximum: Optional[int] = None

    def __post_init__(self):
        if self.minimum < 0:
            raise ValueError("Minimum call count should not be negative")
        if self.maximum is not None and self.maximum < self.minimum:
            raise ValueError("Maximum call count should not be lower than minimum")

    @classmethod
    def exactly(cls, count: int) -> 'Multiplicity':
        return cls(minimum=count, maximum=count)

    @classmethod
    def at_least_once(cls) -> 'Multiplicity':
        return cls(minimum=1, maximum=None)

    @classmethod
    def unbounded(cls) -> 'Multiplicity':
        return cls(minimum=0, maximum=None)

    def is_satisfied(self, count: int) -> bool:
        if count < self.minimum:
            return False
        return self.maximum is None or count <= self.maximum

    def __str__(self) -> str:
        if self.maximum is None:
            return f"at least {self.minimum}"
        if self.maximum == self.minimum:
            return f"exactly {self.minimum}"
        return f"between {self.minimum} and {self.maximum}"


@dataclass
class ExpectationEntry:
    """
    One registered expectation: a request pattern and its responses.

    The cursor into `responses` is the call count. Without an explicit
    multiplicity, each declared response must be requested exactly once,
    or at least once when the last response may be repeated.
    """

    pattern: FullHttpRequest
    responses: List[HttpResponse] = field(default_factory=list)
    call_count: int = 0
    multiplicity: Optional[Multiplicity] = None
    repeat_last: bool = False

    @property
    def required(self) -> Multiplicity:
        if self.multiplicity is not None:
            return self.multiplicity
        if self.repeat_last:
            return Multiplicity(minimum=len(self.responses))
        return Multiplicity.exactly(len(self.responses))

    @property
    def is_satisfied(self) -> bool:
        return self.required.is_satisfied(self.call_count)

    @property
    def is_exhausted(self) -> bool:
        return self.call_count >= len(self.responses)

    @property
    def accepts_more_calls(self) -> bool:
        """Whether the multiplicity allows another call, reusing the last response."""
        maximum = self.required.maximum
        return maximum is None or self.call_count < maximum

    def describe(self) -> str:
        """Readable description used in verification failures."""
        return (
            f"Expected {self.required} call(s), received {self.call_count}:\n"
            f"{self.pattern}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'url': self.pattern.url,
            'method': str(self.pattern.method) if self.pattern.method else None,
            'responses': len(self.responses),
            'call_count': self.call_count,
            'required': str(self.required),
            'satisfied': self.is_satisfied
        }


@dataclass
class MatchResult:
    """Result of matching an incoming request."""

    matched: bool
    response: Optional[HttpResponse] = None
    entry: Optional[ExpectationEntry] = None
    reason: str = ""


class ExpectedResponseProvider:
    """
    Provides responses for incoming requests and verifies expectations.

    Example:
        provider = ExpectedResponseProvider()
        provider.register(
            HttpRequest.builder().method(Method.GET).path('/ping').build(),
            HttpResponse(200, 'text/plain', 'pong')
        )

        provider.get_response(incoming)  # HttpResponse or None
        provider.verify()                # raises UnsatisfiedExpectationException
    """

    def __init__(self, repeat_last_response: bool = False, fail_on_unexpected: bool = True):
        """
        Initialize provider.

        Args:
            repeat_last_response: Serve the last response again once a
                sequence is exhausted. When False such calls are treated as
                unexpected and get no response. An explicit multiplicity
                still caps the number of calls either way.
            fail_on_unexpected: Make verify() fail when requests matching no
                expectation were received. When False they are only logged.
        """
        self._repeat_last_response = repeat_last_response
        self.fail_on_unexpected = fail_on_unexpected

        self._lock = threading.Lock()
        self._entries: "OrderedDict[HttpRequest, ExpectationEntry]" = OrderedDict()
        self._unexpected: List[HttpRequest] = []
        self._rejected: List[str] = []
        self._received: List[HttpRequest] = []

    @property
    def repeat_last_response(self) -> bool:
        """Fixed at construction; each entry's required count depends on it."""
        return self._repeat_last_response

    def register(
        self,
        pattern: RequestLike,
        responses: Union[HttpResponse, Sequence[HttpResponse]],
        multiplicity: Optional[Multiplicity] = None
    ) -> ExpectationEntry:
        """
        Register an expectation, or extend the one for an equal pattern.

        Registering the same pattern again appends its responses to the
        existing sequence.

        Args:
            pattern: Expected request (domain and port are ignored when matching)
            responses: One response or the responses for successive calls
            multiplicity: Required number of calls (replaces any earlier one)

        Returns:
            The expectation entry for this pattern
        """
        if isinstance(responses, HttpResponse):
            responses = [responses]
        else:
            responses = list(responses)

        if not responses:
            raise ValueError("At least one response should be given")
        for response in responses:
            if not isinstance(response, HttpResponse):
                raise TypeError(f"Expected HttpResponse, got {type(response).__name__}")

        key = to_http_request(pattern)

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = ExpectationEntry(
                    pattern=to_full_http_request(pattern),
                    repeat_last=self.repeat_last_response
                )
                self._entries[key] = entry
            entry.responses.extend(responses)
            if multiplicity is not None:
                entry.multiplicity = multiplicity

        logger.debug(f"Registered {len(responses)} response(s) for {entry.pattern.method} {entry.pattern.url}")
        return entry

    def match(self, request: RequestLike) -> MatchResult:
        """
        Match an incoming request and advance the expectation's cursor.

        Args:
            request: Decoded incoming request

        Returns:
            MatchResult with the response to serve, or matched=False
        """
        key = to_http_request(request)

        with self._lock:
            self._received.append(key)
            entry = self._entries.get(key)

            if entry is None:
                self._unexpected.append(key)
                result = MatchResult(matched=False, reason="No expectation registered for request")
            elif not entry.accepts_more_calls:
                self._unexpected.append(key)
                if entry.is_exhausted:
                    reason = f"All {len(entry.responses)} response(s) already served"
                else:
                    reason = f"Expected {entry.required} call(s), already received {entry.call_count}"
                result = MatchResult(matched=False, entry=entry, reason=reason)
            elif not entry.is_exhausted:
                response = entry.responses[entry.call_count]
                entry.call_count += 1
                result = MatchResult(
                    matched=True,
                    response=response,
                    entry=entry,
                    reason=f"Response {entry.call_count} of {len(entry.responses)}"
                )
            else:
                entry.call_count += 1
                result = MatchResult(
                    matched=True,
                    response=entry.responses[-1],
                    entry=entry,
                    reason=f"Repeating last response (call {entry.call_count})"
                )

        if result.matched:
            logger.debug(f"Matched {key.method} {key.path}: {result.reason}")
        else:
            logger.warning(f"Unexpected request {key.method} {key.path}: {result.reason}")
        return result

    def get_response(self, request: RequestLike) -> Optional[HttpResponse]:
        """
        Get the expected response for a request.

        Args:
            request: Decoded incoming request

        Returns:
            Response, or None when the request is unknown (it is then
            recorded as unexpected)
        """
        return self.match(request).response

    def record_unmatchable(self, description: str):
        """
        Record a request that cannot be expressed as an HttpRequest.

        Such requests never match and are reported by verify() along with
        the other unexpected requests.
        """
        with self._lock:
            self._rejected.append(description)
        logger.warning(f"Unmatchable request: {description.splitlines()[0] if description else ''}")

    def verify(self):
        """
        Check that all expectations were satisfied.

        Raises:
            UnsatisfiedExpectationException: listing every unmet expectation
                and, when fail_on_unexpected is set, every unexpected request
        """
        with self._lock:
            unmet = [entry.describe() for entry in self._entries.values() if not entry.is_satisfied]
            unexpected = [str(request) for request in self._unexpected] + list(self._rejected)

        if unexpected and not self.fail_on_unexpected:
            logger.info(f"Ignoring {len(unexpected)} unexpected request(s) during verification")
            unexpected = []

        if unmet or unexpected:
            raise UnsatisfiedExpectationException(unmet=unmet, unexpected=unexpected)

        logger.debug("All expectations satisfied")

    @property
    def expectations(self) -> List[ExpectationEntry]:
        """Registered expectations in registration order."""
        with self._lock:
            return list(self._entries.values())

    @property
    def unexpected_requests(self) -> List[HttpRequest]:
        with self._lock:
            return list(self._unexpected)

    @property
    def unmatchable_requests(self) -> List[str]:
        with self._lock:
            return list(self._rejected)

    @property
    def received_requests(self) -> List[HttpRequest]:
        """Every request seen, matched or not, in arrival order."""
        with self._lock:
            return list(self._received)

    def reset(self):
        """Forget all expectations and recorded requests."""
        with self._lock:
            self._entries.clear()
            self._unexpected.clear()
            self._rejected.clear()
            self._received.clear()
