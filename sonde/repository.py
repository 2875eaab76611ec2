#!/usr/bin/env python3

# standards
from dataclasses import dataclass, field, replace
from datetime import datetime
import json
import threading
from typing import Dict, List, Optional
from uuid import uuid4

# sonde
from .datastructures import Request, Response, utcnow
from .exceptions import ExecutionError, NotFound, PersistenceError


@dataclass
class HistoryEntry:
    """
    One execution of a request, successful or not. `error` is empty for successful executions. `response_headers` is the
    response's headers as JSON text.
    """

    request_id: str
    executed_at: datetime = field(default_factory=utcnow)
    status_code: int = 0
    status: str = ''
    response_time_ms: int = 0
    response_headers: str = '{}'
    response_body: str = ''
    error: str = ''
    id: str = field(default_factory=lambda: str(uuid4()))

    @classmethod
    def from_outcome(
        cls,
        request: Request,
        response: Optional[Response] = None,
        error: Optional[Exception] = None,
    ) -> 'HistoryEntry':
        entry = cls(request_id=request.id)
        if response is not None:
            entry.status_code = response.status_code
            entry.status = response.status
            entry.response_time_ms = response.duration_millis
            entry.response_headers = json.dumps(response.headers.to_dict())
            entry.response_body = response.body
        if error is not None:
            entry.error = str(error)
            if isinstance(error, ExecutionError) and error.elapsed is not None:
                entry.response_time_ms = round(error.elapsed.total_seconds() * 1000)
        return entry

    @property
    def succeeded(self) -> bool:
        return not self.error


class RequestRepository:  # pragma: no cover

    def create(self, req: Request) -> None:
        raise NotImplementedError

    def find_by_id(self, request_id: str) -> Request:
        raise NotImplementedError

    def find_all(self) -> List[Request]:
        """
        Newest first, by creation date.
        """
        raise NotImplementedError

    def update(self, req: Request) -> None:
        raise NotImplementedError

    def delete(self, request_id: str) -> None:
        raise NotImplementedError


class HistoryRepository:  # pragma: no cover

    def save(self, entry: HistoryEntry) -> None:
        raise NotImplementedError

    def find_by_id(self, entry_id: str) -> HistoryEntry:
        raise NotImplementedError

    def find_all(self, limit: int = 0) -> List[HistoryEntry]:
        """
        Newest first. A `limit` of 0 means no limit.
        """
        raise NotImplementedError

    def find_by_request_id(self, request_id: str, limit: int = 0) -> List[HistoryEntry]:
        raise NotImplementedError

    def delete(self, entry_id: str) -> None:
        raise NotImplementedError

    def delete_older_than(self, cutoff: datetime) -> int:
        """
        Deletes entries executed before `cutoff`, returns how many were deleted.
        """
        raise NotImplementedError


class MemoryRequestRepository(RequestRepository):
    """
    Keeps requests in a dict. Requests are cloned on the way in and on the way out, so callers can't modify stored data by
    accident.
    """

    def __init__(self) -> None:
        self._requests: Dict[str, Request] = {}
        self._lock = threading.Lock()

    def create(self, req: Request) -> None:
        with self._lock:
            if req.id in self._requests:
                raise PersistenceError(f'Request {req.id} already exists')
            self._requests[req.id] = req.clone()

    def find_by_id(self, request_id: str) -> Request:
        with self._lock:
            try:
                return self._requests[request_id].clone()
            except KeyError:
                raise NotFound(f'Request {request_id} not found') from None

    def find_all(self) -> List[Request]:
        with self._lock:
            requests = [req.clone() for req in self._requests.values()]
        return sorted(requests, key=lambda req: req.created_at, reverse=True)

    def update(self, req: Request) -> None:
        with self._lock:
            if req.id not in self._requests:
                raise NotFound(f'Request {req.id} not found')
            self._requests[req.id] = req.clone()

    def delete(self, request_id: str) -> None:
        with self._lock:
            if self._requests.pop(request_id, None) is None:
                raise NotFound(f'Request {request_id} not found')


class MemoryHistoryRepository(HistoryRepository):

    def __init__(self) -> None:
        self._entries: Dict[str, HistoryEntry] = {}
        self._lock = threading.Lock()

    def save(self, entry: HistoryEntry) -> None:
        with self._lock:
            self._entries[entry.id] = replace(entry)

    def find_by_id(self, entry_id: str) -> HistoryEntry:
        with self._lock:
            try:
                return replace(self._entries[entry_id])
            except KeyError:
                raise NotFound(f'History entry {entry_id} not found') from None

    def find_all(self, limit: int = 0) -> List[HistoryEntry]:
        return self._select(lambda entry: True, limit)

    def find_by_request_id(self, request_id: str, limit: int = 0) -> List[HistoryEntry]:
        return self._select(lambda entry: entry.request_id == request_id, limit)

    def delete(self, entry_id: str) -> None:
        with self._lock:
            if self._entries.pop(entry_id, None) is None:
                raise NotFound(f'History entry {entry_id} not found')

    def delete_older_than(self, cutoff: datetime) -> int:
        with self._lock:
            old_ids = [entry.id for entry in self._entries.values() if entry.executed_at < cutoff]
            for entry_id in old_ids:
                del self._entries[entry_id]
        return len(old_ids)

    def _select(self, predicate, limit: int) -> List[HistoryEntry]:
        with self._lock:
            entries = [replace(entry) for entry in self._entries.values() if predicate(entry)]
        entries.sort(key=lambda entry: entry.executed_at, reverse=True)
        return entries[:limit] if limit > 0 else entries
