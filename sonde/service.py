#!/usr/bin/env python3

# standards
from datetime import timedelta
import logging
from typing import List, Optional
from uuid import uuid4

# sonde
from .client import HttpClient
from .context import Context
from .datastructures import Request, Response, utcnow
from .exceptions import ExecutionError, NotFound, ValidationError
from .repository import HistoryEntry, HistoryRepository, RequestRepository


class RequestService:
    """
    Ties the client to the repositories: saving and loading requests, and executing them with their outcome recorded to history.
    All constructor arguments are mandatory.
    """

    def __init__(
        self,
        repository: RequestRepository,
        client: HttpClient,
        history: HistoryRepository,
        logger: logging.Logger,
    ) -> None:
        self.repository = repository
        self.client = client
        self.history = history
        self.logger = logger

    def create_request(self, req: Request) -> Request:
        """
        Fills in the ID and timestamps if needed, and validates the request. This does not save it, see `save_request`.
        """
        if not req.id:
            req.id = str(uuid4())
        req.updated_at = utcnow()
        self._validate(req, 'request validation failed')
        self.logger.info('creating request %s (%r): %s %s', req.id, req.name, req.method, req.url)
        return req

    def execute(self, req: Request, context: Optional[Context] = None) -> Response:
        self._validate(req, 'request validation failed before execution')
        self.logger.info('executing request %s: %s %s', req.id, req.method, req.url)
        try:
            res = self.client.execute(req, context)
        except ExecutionError as error:
            self.logger.error('request %s execution failed (%s): %s', req.id, error.kind, error)
            raise
        self.logger.info('request %s executed: %d in %dms', req.id, res.status_code, res.duration_millis)
        return res

    def execute_and_record(self, req: Request, context: Optional[Context] = None) -> Response:
        """
        Like `execute`, but also records the outcome to history, whether the execution succeeded or not. Failing to save the
        history entry is logged and otherwise ignored: the caller always gets the execution's own outcome.
        """
        self._validate(req, 'request validation failed')
        self.logger.info('executing and recording request %s: %s %s', req.id, req.method, req.url)
        res: Optional[Response] = None
        execution_error: Optional[ExecutionError] = None
        try:
            res = self.client.execute(req, context)
        except ExecutionError as error:
            execution_error = error
            self.logger.error('request %s execution failed (%s): %s', req.id, error.kind, error)
        else:
            self.logger.info('request %s executed: %d in %dms', req.id, res.status_code, res.duration_millis)

        entry = HistoryEntry.from_outcome(req, res, execution_error)
        try:
            self.history.save(entry)
        except Exception as error:  # pylint: disable=broad-except
            self.logger.error('failed to save request %s execution to history (%s): %s', req.id, entry.id, error)
        else:
            self.logger.debug('request %s execution saved to history (%s)', req.id, entry.id)

        if execution_error is not None:
            raise execution_error
        assert res is not None
        return res

    def save_request(self, req: Request) -> None:
        """
        Updates the request if one with the same ID was saved before, else creates it.
        """
        self._validate(req, 'cannot save invalid request')
        self.logger.info('saving request %s (%r)', req.id, req.name)
        try:
            self.repository.find_by_id(req.id)
        except NotFound:
            self._logged(self.repository.create, req, 'failed to create request')
        else:
            req.updated_at = utcnow()
            self._logged(self.repository.update, req, 'failed to update request')
        self.logger.info('request %s saved', req.id)

    def load_request(self, request_id: str) -> Request:
        self.logger.debug('loading request %s', request_id)
        try:
            return self.repository.find_by_id(request_id)
        except NotFound:
            self.logger.warning('request %s not found', request_id)
            raise

    def list_requests(self) -> List[Request]:
        requests = self.repository.find_all()
        self.logger.debug('listed %d requests', len(requests))
        return requests

    def delete_request(self, request_id: str) -> None:
        self.logger.info('deleting request %s', request_id)
        self._logged(self.repository.delete, request_id, 'failed to delete request')

    def _validate(self, req: Request, message: str) -> None:
        try:
            req.validate()
        except ValidationError as error:
            self.logger.warning('%s: request %s, %s', message, req.id, error)
            raise

    def _logged(self, operation, argument, message: str) -> None:
        try:
            operation(argument)
        except Exception as error:
            self.logger.error('%s: %s', message, error)
            raise


class HistoryService:
    """
    Reading and pruning the execution history.
    """

    def __init__(self, repository: HistoryRepository, logger: logging.Logger) -> None:
        self.repository = repository
        self.logger = logger

    def get_history(self, limit: int = 0) -> List[HistoryEntry]:
        entries = self.repository.find_all(limit)
        self.logger.debug('retrieved %d history entries (limit %d)', len(entries), limit)
        return entries

    def get_request_history(self, request_id: str, limit: int = 0) -> List[HistoryEntry]:
        entries = self.repository.find_by_request_id(request_id, limit)
        self.logger.debug('retrieved %d history entries for request %s (limit %d)', len(entries), request_id, limit)
        return entries

    def delete_history(self, entry_id: str) -> None:
        self.logger.info('deleting history entry %s', entry_id)
        self.repository.delete(entry_id)

    def cleanup_old_history(self, days_to_keep: int) -> int:
        """
        Deletes entries older than `days_to_keep` days, returns how many were deleted.
        """
        if days_to_keep < 0:
            raise ValueError(f'days_to_keep must be non-negative, got: {days_to_keep}')
        cutoff = utcnow() - timedelta(days=days_to_keep)
        count = self.repository.delete_older_than(cutoff)
        self.logger.info('deleted %d history entries older than %s', count, cutoff.isoformat())
        return count

    def save_execution(self, entry: HistoryEntry) -> None:
        self.logger.debug('saving history entry %s for request %s', entry.id, entry.request_id)
        self.repository.save(entry)
