"""Shared fixtures: an in-memory Observable Query driven by the test."""

import asyncio

import pytest

from suspensecache import NetworkStatus, QueryResult

LOADING = QueryResult(loading=True, network_status=NetworkStatus.loading)


class FakeObservableQuery:
    """Observable Query whose fetches are futures the test resolves by hand."""

    def __init__(self, options, initial=LOADING):
        self.options = options
        self.current = initial
        self.observers = []
        self.fetches = []  # (kind, argument, future)
        self.first_subscribe_fetches = 0
        self.ever_subscribed = False

    # --- ObservableQuery protocol ---

    def get_current_result(self):
        return self.current

    def subscribe(self, observer):
        if not self.ever_subscribed:
            self.ever_subscribed = True
            if self.options.fetch_on_first_subscribe:
                self.first_subscribe_fetches += 1
                self._begin("subscribe", None)
        self.observers.append(observer)

        def _unsubscribe():
            if observer in self.observers:
                self.observers.remove(observer)

        return _unsubscribe

    def reobserve(self):
        return self._begin("reobserve", None)

    def fetch_more(self, options):
        return self._begin("fetch_more", options)

    def refetch(self, variables=None):
        return self._begin("refetch", variables)

    def has_observers(self):
        return bool(self.observers)

    # --- Test controls ---

    def _begin(self, kind, argument):
        future = asyncio.get_running_loop().create_future()
        self.fetches.append((kind, argument, future))
        return future

    def emit(self, result):
        self.current = result
        for observer in list(self.observers):
            observer(result)

    def resolve(self, index, data):
        result = QueryResult(data=data, loading=False, network_status=NetworkStatus.ready)
        self.fetches[index][2].set_result(result)
        self.emit(result)
        return result

    def reject(self, index, error):
        self.fetches[index][2].set_exception(error)


class FactorySpy:
    """Observable Query factory that records every query it builds."""

    def __init__(self):
        self.built = []

    def __call__(self, options):
        query = FakeObservableQuery(options)
        self.built.append(query)
        return query


@pytest.fixture
def factory():
    return FactorySpy()


@pytest.fixture
def operation():
    return object()
