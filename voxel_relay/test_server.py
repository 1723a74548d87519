import sys, os
# Ensure repo root is on sys.path so the `voxel_relay` package can be imported when running this script directly
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import asyncio
import json
import tempfile
import unittest
from websockets.asyncio.client import connect
from voxel_relay.config import Settings, load_settings
from voxel_relay.game_ws import GameRelay
from voxel_relay.http import resolve_static_path
from voxel_relay.main import start_server

TIMEOUT = 5


async def recv_json(ws):
    return json.loads(await asyncio.wait_for(ws.recv(), TIMEOUT))


class TestEndToEnd(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.static = tempfile.TemporaryDirectory()
        with open(os.path.join(self.static.name, 'index.html'), 'w', encoding='utf-8') as f:
            f.write('<h1>voxel</h1>')
        self.relay = GameRelay()
        self.server = await start_server(Settings(host='127.0.0.1', port=0, static_dir=self.static.name), self.relay)
        port = list(self.server.sockets)[0].getsockname()[1]
        self.url = f"ws://127.0.0.1:{port}"
        self.port = port

    async def asyncTearDown(self):
        self.server.close()
        await self.server.wait_closed()
        self.static.cleanup()

    async def http_get(self, path):
        reader, writer = await asyncio.open_connection('127.0.0.1', self.port)
        writer.write(f"GET {path} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode())
        await writer.drain()
        data = await asyncio.wait_for(reader.read(), TIMEOUT)
        writer.close()
        return data

    async def test_two_players_join_move_and_leave(self):
        async with connect(self.url) as alice:
            await alice.send(json.dumps({'type': 'hello', 'name': 'Alice'}))
            welcome = await recv_json(alice)
            self.assertEqual(welcome['type'], 'welcome')
            alice_id = welcome['id']

            async with connect(self.url) as bob:
                await bob.send(json.dumps({'type': 'hello', 'name': 'Bob', 'team': 'blue'}))
                bob_welcome = await recv_json(bob)
                self.assertEqual({p['name'] for p in bob_welcome['players']}, {'Alice', 'Bob'})
                self.assertGreater(bob_welcome['id'], alice_id)

                join = await recv_json(alice)
                self.assertEqual(join['player']['name'], 'Bob')
                self.assertEqual(await recv_json(alice), {'type': 'chat', 'name': 'Server', 'text': 'Bob connected'})

                await alice.send(json.dumps({'type': 'state', 'x': 1, 'y': 2, 'z': 3, 'yaw': 0.5}))
                self.assertEqual(await recv_json(bob), {'type': 'state', 'id': alice_id, 'x': 1, 'y': 2, 'z': 3, 'yaw': 0.5})

                await bob.send('garbage')
                await bob.send(json.dumps({'type': 'chat', 'text': 'still here'}))
                self.assertEqual(await recv_json(alice), {'type': 'chat', 'id': bob_welcome['id'], 'name': 'Bob', 'text': 'still here'})

            self.assertEqual(await recv_json(alice), {'type': 'leave', 'id': bob_welcome['id']})
            self.assertEqual(await recv_json(alice), {'type': 'chat', 'name': 'Server', 'text': 'Bob disconnected'})
            self.assertEqual(len(self.relay.registry), 1)

    async def test_static_index_is_served(self):
        response = await self.http_get('/')
        self.assertTrue(response.startswith(b'HTTP/1.1 200'))
        self.assertIn(b'Content-Type: text/html', response)
        self.assertTrue(response.endswith(b'<h1>voxel</h1>'))

    async def test_missing_static_file_is_404(self):
        response = await self.http_get('/nope.js')
        self.assertTrue(response.startswith(b'HTTP/1.1 404'))


class TestStaticPaths(unittest.TestCase):
    def test_root_maps_to_index(self):
        self.assertEqual(resolve_static_path('/srv/www', '/?v=2'), os.path.abspath('/srv/www/index.html'))

    def test_traversal_is_refused(self):
        self.assertIsNone(resolve_static_path('/srv/www', '/../etc/passwd'))


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        settings = load_settings([], environ={})
        self.assertEqual((settings.port, settings.host, settings.password), (3000, '0.0.0.0', ''))
        self.assertEqual(settings.log_level, 'INFO')

    def test_positional_arguments(self):
        settings = load_settings(['4000', '127.0.0.1', 'pw'], environ={})
        self.assertEqual((settings.port, settings.host, settings.password), (4000, '127.0.0.1', 'pw'))

    def test_environment_fallback(self):
        settings = load_settings([], environ={'PORT': '5000', 'HOST': '::1', 'PASSWORD': 'x', 'LOG_LEVEL': 'debug'})
        self.assertEqual((settings.port, settings.host, settings.password, settings.log_level), (5000, '::1', 'x', 'DEBUG'))

    def test_command_line_beats_environment(self):
        settings = load_settings(['--port', '6000'], environ={'PORT': '5000'})
        self.assertEqual(settings.port, 6000)

    def test_invalid_port_exits(self):
        with self.assertRaises(SystemExit):
            load_settings(['not-a-port'], environ={})


if __name__ == '__main__':
    unittest.main()
