import unittest
from pathlib import Path


from dbcparser import DbcParser, ByteOrder, ValueType, Multiplexor, EnvironmentVariableType

DEMO_DBC = Path(__file__).parent / "demo.dbc"


class TestDbcParser(unittest.TestCase):

    def setUp(self):
        with open(DEMO_DBC, "r", encoding="utf-8") as f:
            self.result = DbcParser().parse(f)
        self.network = self.result.network
        return super().setUp()

    def test_parse_result(self):
        self.assertTrue(self.result.success)
        self.assertFalse(self.result.cancelled)
        self.assertEqual(self.result.diagnostics, [])

    def test_header(self):
        self.assertEqual(self.network.version, '1.2.3')
        self.assertEqual(self.network.new_symbols[0], 'NS_DESC_')
        self.assertEqual(len(self.network.new_symbols), 9)
        self.assertEqual(list(self.network.nodes), ['Engine', 'Gateway', 'Dashboard'])
        self.assertEqual(self.network.value_tables['GearTable'].value_descriptions[0], 'Neutral')

    def test_messages(self):
        self.assertEqual(len(self.network.messages), 3)
        engine_data = self.network.messages[100]
        self.assertEqual(engine_data.name, 'EngineData')
        self.assertEqual(engine_data.size, 8)
        self.assertEqual(engine_data.transmitter, 'Engine')
        self.assertEqual(engine_data.transmitters, {'Engine', 'Gateway'})
        self.assertEqual(self.network.messages[2147483848].name, 'ExtendedStatus')
        self.assertEqual(self.network.messages[300].transmitter, '')

    def test_signals(self):
        signals = self.network.messages[100].signals
        self.assertEqual(list(signals), ['EngineSpeed', 'CoolantTemp', 'ThrottlePos'])
        self.assertEqual(signals['EngineSpeed'].factor, 0.25)
        self.assertEqual(signals['EngineSpeed'].receivers, {'Gateway', 'Dashboard'})
        self.assertEqual(signals['CoolantTemp'].value_type, ValueType.SIGNED)
        self.assertEqual(signals['CoolantTemp'].offset, -40.0)
        self.assertEqual(signals['ThrottlePos'].byte_order, ByteOrder.BIG_ENDIAN)
        self.assertEqual(signals['ThrottlePos'].receivers, set())

        muxed = self.network.messages[2147483848].signals
        self.assertEqual(muxed['Mode'].multiplexor, Multiplexor.SWITCH)
        self.assertEqual(muxed['Torque'].multiplexor, Multiplexor.MULTIPLEXED)
        self.assertEqual(muxed['Torque'].multiplexer_switch_value, 2)
        self.assertEqual(muxed['Speed'].extended_multiplexors['Mode'].value_ranges, {(1, 1), (5, 9)})

    def test_environment_variables(self):
        variables = self.network.environment_variables
        self.assertEqual(variables['EnvKlemme15'].access_nodes, set())
        self.assertEqual(variables['EnvName'].type, EnvironmentVariableType.STRING)
        self.assertEqual(variables['EnvBlob'].type, EnvironmentVariableType.DATA)
        self.assertEqual(variables['EnvBlob'].data_size, 16)

    def test_comments_and_attributes(self):
        self.assertEqual(self.network.comment, 'Demo network')
        self.assertEqual(self.network.messages[100].signals['EngineSpeed'].comment,
                         'Crankshaft speed\nmeasured at the flywheel')
        self.assertEqual(self.network.attribute_values['BusType'].string_value, 'CAN FD')
        self.assertEqual(self.network.attribute_defaults['GenSigSendType'].value, 'Cyclic')
        speed = self.network.messages[100].signals['EngineSpeed']
        self.assertEqual(speed.attribute_values['GenSigSendType'].value, 'OnChange')
        self.assertEqual(self.network.messages[100].signal_groups['EngineGroup'].signals,
                         {'EngineSpeed', 'CoolantTemp'})
        self.assertEqual(self.network.signal_types['Temperature'].offset, -40.0)


if __name__ == '__main__':
    unittest.main()
