#!/usr/bin/env python3

# It's the pytest way, pylint: disable=redefined-outer-name

# standards
import gzip
from io import StringIO
import logging
from random import randrange
from threading import Thread
from time import sleep

# 3rd parties
from flask import Flask, jsonify, make_response, request
import pytest
from werkzeug.serving import make_server  # installed transitively by Flask

# sonde
from sonde import HttpClient, basic_logging_config, logger


basic_logging_config(level='DEBUG')


@pytest.fixture
def client():
    with HttpClient() as client:
        yield client


def flask_app():
    # Yeah, we don't call these directly, but they still need names, pylint: disable=unused-variable
    app = Flask('sonde-tests')

    @app.route('/hello')
    def hello():
        return 'hello'

    @app.route('/echo', methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS'])
    def echo():
        res = jsonify({
            'method': request.method,
            'args': request.args,
            'headers': dict(request.headers.items()),
            'body': request.get_data(as_text=True),
        })
        if 'Accept' in request.headers:
            res.headers['Accept'] = request.headers['Accept']
        return res

    @app.route('/status/<int:code>')
    def status(code):
        return make_response('', code)

    @app.route('/text/latin-1')
    def latin_1():
        return 'café'.encode('ISO-8859-1'), 200, {'Content-Type': 'text/plain; charset=ISO-8859-1'}

    @app.route('/gzipped')
    def gzipped():
        return gzip.compress(b'hello ' * 100), 200, {'Content-Type': 'text/plain', 'Content-Encoding': 'gzip'}

    @app.route('/multi-header')
    def multi_header():
        res = make_response('ok')
        res.headers.add('X-Multi', 'one')
        res.headers.add('X-Multi', 'two')
        return res

    @app.route('/slow')
    def slow():
        sleep(0.2)
        return 'finally'

    @app.route('/hang')
    def hang():
        sleep(2)
        return 'too late'

    @app.route('/redirect/chain/1')
    def redirect_chain_1():
        res = make_response('Bounce 1', 302)
        res.headers['Location'] = '/redirect/chain/2'
        return res

    @app.route('/redirect/chain/2')
    def redirect_chain_2():
        res = make_response('Bounce 2', 302)
        res.headers['Location'] = '/redirect/chain/3'
        return res

    @app.route('/redirect/chain/3')
    def redirect_chain_3():
        return 'Landed'

    @app.route('/redirect/loop')
    def redirect_loop():
        res = make_response('Loop 1', 302)
        res.headers['Location'] = '/redirect/loop-back'
        return res

    @app.route('/redirect/loop-back')
    def redirect_loop_back():
        res = make_response('Loop 2', 302)
        res.headers['Location'] = '/redirect/loop'
        return res

    @app.route('/redirect/status/<int:code>', methods=['GET', 'POST', 'PUT', 'HEAD'])
    def redirect_with_status(code):
        res = make_response('', code)
        res.headers['Location'] = '/echo'
        return res

    @app.route('/redirect/other-host')
    def redirect_other_host():
        res = make_response('', 302)
        res.headers['Location'] = f'http://{request.host.replace("127.0.0.1", "localhost")}/echo'
        return res

    return app


@pytest.fixture(scope='session')
def server():
    app = flask_app()
    port = randrange(5000, 50000)
    server = make_server('127.0.0.1', port, app, threaded=True)  # pylint: disable=redefined-outer-name
    app.app_context().push()
    thread = Thread(target=server.serve_forever)
    thread.start()
    try:
        yield f'http://127.0.0.1:{port}'
    finally:
        server.shutdown()
        thread.join()


@pytest.fixture
def captured_logs():
    handler = logging.StreamHandler(StringIO())
    original_handlers = logger.handlers
    logger.handlers = [handler]

    def getvalue():
        value = handler.stream.getvalue()
        handler.stream = StringIO()
        logging.debug('Captured logs: %r', value)
        return value
    yield getvalue

    logger.handlers = original_handlers
