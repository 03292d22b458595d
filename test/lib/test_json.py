from dataclasses import dataclass

from rdat.lib import json
from rdat.lib.dxil.constants import ResourceClass, ShaderFeature
from rdat.lib.dxil.reflection import decode

from .dxil import ContainerBuilder
from .. import TestBase


@dataclass
class Opaque:
    value: int


class TestJSON(TestBase):

    def test_standard_conversions(self):
        self.assertEqual(json.standard_conversions(ResourceClass.UAV), 'UAV')
        self.assertEqual(
            json.standard_conversions(ShaderFeature.Doubles | ShaderFeature.WaveOps), ['Doubles', 'WaveOps'])
        self.assertEqual(json.standard_conversions({1, 2}), [1, 2])
        self.assertEqual(json.standard_conversions(b'ab'), 'ab')
        with self.assertRaises(TypeError):
            json.standard_conversions(Opaque(0))

    def test_large_integers(self):
        data = json.loads(json.dumps({'big': 1 << 70, 'small': 1 << 60}))
        self.assertEqual(data['big'], hex(1 << 70))
        self.assertEqual(data['small'], 1 << 60)

    def test_buffers(self):
        self.assertEqual(json.loads(json.dumps([b'\xFFa'])), ['\xFFa'])

    def test_unknown_objects(self):
        with self.assertRaises(TypeError):
            json.dumps(Opaque(1))
        self.assertEqual(json.loads(json.dumps(Opaque(2), tojson=lambda o: o.value)), 2)

    def test_minified(self):
        self.assertEqual(json.dumps({'a': [1]}, pretty=False), b'{"a":[1]}')

    def test_library_description(self):
        b = ContainerBuilder()
        b.resource('cb', id=4)
        b.function('\x01?main@@YAXXZ', 'main', resources=[0], dependencies=['helper'], feature1=1)
        data = json.loads(json.dumps(decode(b.build())))
        self.assertEqual(data['subobjects'], [])
        function, = data['functions']
        self.assertEqual(function['unmangled_name'], 'main')
        self.assertEqual(function['shader_kind'], 'Library')
        self.assertEqual(function['resources'], ['cb'])
        self.assertEqual(function['function_dependencies'], ['helper'])
        self.assertEqual(function['features'], ['Doubles'])
        resource, = data['resources']
        self.assertEqual(resource['name'], 'cb')
        self.assertEqual(resource['class'], 'CBuffer')
        self.assertEqual(resource['kind'], 'CBuffer')
        self.assertEqual(resource['id'], 4)
