import unittest

from swis_datasource_toolkit.core.integrations.source_metadata_extractors.swis_metadata_extractor import (
    SwisMetadataExtractor,
    translate_type,
)
from swis_datasource_toolkit.core.models import QueryFormat, SemanticType
from swis_datasource_toolkit.exceptions import SchemaError

NODES_SCHEMA = [
    {'Index': 0, 'Alias': 'Caption', 'DataType': 'System.String'},
    {'Index': 1, 'Alias': 'CpuLoad', 'DataType': 'System.Double'},
]

CPU_HISTORY_SCHEMA = [
    {'Index': 1, 'Alias': 'NodeID', 'DataType': 'System.Int32'},
    {'Index': 0, 'Alias': 'ObservationTimeStamp', 'DataType': 'System.DateTime'},
    {'Index': 2, 'Alias': 'Caption', 'DataType': 'System.String'},
    {'Index': 3, 'Alias': 'AvgLoad', 'DataType': 'System.Single'},
]


class TestTranslateType(unittest.TestCase):

    def test_type_markers(self):
        self.assertEqual(translate_type('System.Int32'), SemanticType.NUMBER)
        self.assertEqual(translate_type('System.Decimal'), SemanticType.NUMBER)
        self.assertEqual(translate_type('System.Single'), SemanticType.NUMBER)
        self.assertEqual(translate_type('System.DateTime'), SemanticType.TIME)
        self.assertEqual(translate_type('System.Boolean'), SemanticType.BOOLEAN)
        self.assertEqual(translate_type('System.Guid'), SemanticType.STRING)
        self.assertEqual(translate_type(None), SemanticType.STRING)


class TestSwisMetadataExtractor(unittest.TestCase):

    def setUp(self):
        self.extractor = SwisMetadataExtractor()

    def test_time_series_without_time_column_fails(self):
        with self.assertRaises(SchemaError) as ctx:
            self.extractor.derive(NODES_SCHEMA, QueryFormat.TIME_SERIES)
        self.assertIn('DateTime', str(ctx.exception))

    def test_time_series_with_one_column_fails(self):
        schema = [{'Index': 0, 'Alias': 'ObservationTimeStamp', 'DataType': 'System.DateTime'}]
        with self.assertRaises(SchemaError) as ctx:
            self.extractor.derive(schema, QueryFormat.TIME_SERIES)
        self.assertIn('at least 2 columns', str(ctx.exception))

    def test_table_without_time_column(self):
        metadata = self.extractor.derive(NODES_SCHEMA, QueryFormat.TABLE)
        self.assertEqual(metadata.column_names, ['Caption', 'CpuLoad'])
        self.assertEqual(metadata.time_column_index, -1)
        self.assertEqual(metadata.label_column_index, 0)
        self.assertEqual(metadata.columns[1].semantic_type, SemanticType.NUMBER)

    def test_columns_are_ordered_by_index(self):
        metadata = self.extractor.derive(CPU_HISTORY_SCHEMA, QueryFormat.TIME_SERIES)
        self.assertEqual(metadata.column_names, ['ObservationTimeStamp', 'NodeID', 'Caption', 'AvgLoad'])
        self.assertEqual([c.index for c in metadata.columns], [0, 1, 2, 3])
        self.assertEqual(metadata.time_column_index, 0)
        self.assertEqual(metadata.label_column_index, 2)

    def test_index_gaps_are_replaced_by_position(self):
        schema = [
            {'Index': 0, 'Alias': 'time', 'DataType': 'System.DateTime'},
            {'Index': 5, 'Alias': 'Value', 'DataType': 'System.Double'},
        ]
        with self.assertLogs('swis_datasource_toolkit.core.integrations.source_metadata_extractors'
                             '.swis_metadata_extractor', level='WARNING'):
            metadata = self.extractor.derive(schema, QueryFormat.TIME_SERIES)
        self.assertEqual(metadata.find_column('Value'), 1)

    def test_time_column_by_alias(self):
        schema = [
            {'Index': 0, 'Alias': 'Timestamp', 'DataType': 'System.String'},
            {'Index': 1, 'Alias': 'Value', 'DataType': 'System.Double'},
        ]
        metadata = self.extractor.derive(schema, QueryFormat.TIME_SERIES)
        self.assertEqual(metadata.time_column_index, 0)

    def test_first_datetime_column_wins(self):
        schema = [
            {'Index': 0, 'Alias': 'LastBoot', 'DataType': 'System.DateTime'},
            {'Index': 1, 'Alias': 'LastSync', 'DataType': 'System.DateTime'},
            {'Index': 2, 'Alias': 'Value', 'DataType': 'System.Double'},
        ]
        metadata = self.extractor.derive(schema, QueryFormat.TIME_SERIES)
        self.assertEqual(metadata.time_column_index, 0)

    def test_label_prefers_keyword_columns(self):
        schema = [
            {'Index': 0, 'Alias': 'time', 'DataType': 'System.DateTime'},
            {'Index': 1, 'Alias': 'Status', 'DataType': 'System.String'},
            {'Index': 2, 'Alias': 'NodeName', 'DataType': 'System.String'},
            {'Index': 3, 'Alias': 'Value', 'DataType': 'System.Double'},
        ]
        metadata = self.extractor.derive(schema, QueryFormat.TIME_SERIES)
        self.assertEqual(metadata.label_column_index, 2)

    def test_no_string_column_means_no_label(self):
        schema = [
            {'Index': 0, 'Alias': 'time', 'DataType': 'System.DateTime'},
            {'Index': 1, 'Alias': 'Value', 'DataType': 'System.Double'},
        ]
        metadata = self.extractor.derive(schema, QueryFormat.TIME_SERIES)
        self.assertEqual(metadata.label_column_index, -1)

    def test_empty_schema_for_table(self):
        metadata = self.extractor.derive([], QueryFormat.TABLE)
        self.assertEqual(metadata.columns, ())
        self.assertEqual(metadata.time_column_index, -1)

    def test_infer_from_record(self):
        metadata = self.extractor.infer_from_record({'Caption': 'node1', 'CpuLoad': 42, 'Up': True})
        self.assertEqual(metadata.column_names, ['Caption', 'CpuLoad', 'Up'])
        self.assertEqual([c.semantic_type for c in metadata.columns],
                         [SemanticType.STRING, SemanticType.NUMBER, SemanticType.BOOLEAN])


if __name__ == '__main__':
    unittest.main()
