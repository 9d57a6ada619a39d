import re
import unittest
from datetime import datetime, timezone

from swis_datasource_toolkit.core.models import TemplateVariable, TimeRange
from swis_datasource_toolkit.core.utils.swql_utils import (
    interpolate_variable,
    resolve_macros,
    substitute_template_variables,
    with_schema_only,
)

TIME_RANGE = TimeRange(from_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
                       to_time=datetime(2024, 1, 2, tzinfo=timezone.utc))

DOWNSAMPLED = ("ADDSECOND(FLOOR(SecondDiff('1970-01-01T00:00:00', ObservationTimeStamp)/@granularity+1)"
               "*@granularity, '1970-01-01T00:00:00')")


class TestResolveMacros(unittest.TestCase):

    def test_time_placeholders_become_parameters(self):
        result = resolve_macros("SELECT 1 FROM T WHERE TS BETWEEN $from AND $to", TIME_RANGE, 60000)
        self.assertEqual(result, "SELECT 1 FROM T WHERE TS BETWEEN @timeFrom AND @timeTo")

    def test_time_range_is_not_inlined(self):
        text = "SELECT downsample(TS) FROM T WHERE TS BETWEEN $from AND $to"
        self.assertEqual(resolve_macros(text, TIME_RANGE, 60000), resolve_macros(text, None, 60000))
        self.assertNotIn('2024-01-01', resolve_macros(text, TIME_RANGE, 60000))

    def test_time_placeholders_are_case_sensitive(self):
        result = resolve_macros("WHERE TS > $FROM", TIME_RANGE, 60000)
        self.assertEqual(result, "WHERE TS > $FROM")

    def test_text_without_macro_is_unchanged(self):
        text = "SELECT Caption, CPULoad FROM Orion.Nodes"
        self.assertEqual(resolve_macros(text, TIME_RANGE, 60000), text)

    def test_idempotent_without_macro(self):
        for text in ["SELECT 1 FROM T WHERE A > $from", "SELECT Caption FROM Orion.Nodes", ""]:
            once = resolve_macros(text, TIME_RANGE, 1000)
            self.assertEqual(resolve_macros(once, TIME_RANGE, 1000), once)

    def test_downsample_expansion_and_granularity_clause(self):
        result = resolve_macros("SELECT downsample(ObservationTimeStamp) AS time FROM Orion.CPULoad",
                                TIME_RANGE, 300000)
        self.assertEqual(result, f"SELECT {DOWNSAMPLED} AS time FROM Orion.CPULoad WITH GRANULARITY '0.0:5:0.0'")

    def test_every_downsample_occurrence_is_expanded(self):
        result = resolve_macros("SELECT downsample(ObservationTimeStamp) FROM T "
                                "GROUP BY downsample(ObservationTimeStamp)", TIME_RANGE, 60000)
        self.assertNotIn('downsample(', result)
        self.assertEqual(result.count(DOWNSAMPLED), 2)
        self.assertEqual(result.count('WITH GRANULARITY'), 1)

    def test_existing_granularity_is_kept(self):
        text = "SELECT downsample(TS) FROM T WITH GRANULARITY '0.0:1:0.0'"
        result = resolve_macros(text, TIME_RANGE, 300000)
        self.assertTrue(result.endswith("WITH GRANULARITY '0.0:1:0.0'"))
        self.assertEqual(result.count('GRANULARITY'), 1)

    def test_granularity_parameter_is_not_a_directive(self):
        result = resolve_macros("SELECT downsample(TS) FROM T", TIME_RANGE, 60000)
        self.assertIn('/@granularity+1)*@granularity', result)
        self.assertTrue(result.endswith(" WITH GRANULARITY '0.0:1:0.0'"))

        result = resolve_macros("SELECT downsample(TS), @granularity AS Bucket FROM T", TIME_RANGE, 60000)
        self.assertTrue(result.endswith(" WITH GRANULARITY '0.0:1:0.0'"))

    def test_lowercase_granularity_directive_is_kept(self):
        text = "SELECT downsample(TS) FROM T with granularity '0.0:1:0.0'"
        result = resolve_macros(text, TIME_RANGE, 300000)
        self.assertTrue(result.endswith("with granularity '0.0:1:0.0'"))
        self.assertNotIn("'0.0:5:0.0'", result)

    def test_zero_interval_uses_one_second(self):
        result = resolve_macros("SELECT downsample(TS) FROM T", TIME_RANGE, 0)
        self.assertTrue(result.endswith("WITH GRANULARITY '0.0:0:1.0'"))

    def test_granularity_clause_format(self):
        pattern = re.compile(r"WITH GRANULARITY '(\d+\.\d+:\d+:\d+\.\d+)'$")
        for interval_ms in [0, 1, 999, 1000, 61001, 3600000, 90061001]:
            result = resolve_macros("SELECT downsample(TS) FROM T", TIME_RANGE, interval_ms)
            self.assertRegex(result, pattern)

    def test_nested_parentheses_stop_at_first_closing_parenthesis(self):
        result = resolve_macros("SELECT downsample(ToLocal(TS)) FROM T", TIME_RANGE, 60000)
        self.assertIn("SecondDiff('1970-01-01T00:00:00', ToLocal(TS)/@granularity", result)
        self.assertIn("'1970-01-01T00:00:00')) FROM T", result)

    def test_schema_only_directive(self):
        self.assertEqual(with_schema_only("SELECT 1 FROM T"), "SELECT 1 FROM T WITH SCHEMAONLY")


class TestTemplateVariables(unittest.TestCase):

    def test_multi_value_strings_are_quoted(self):
        variable = TemplateVariable(name='node', value="it's", multi=True)
        self.assertEqual(interpolate_variable("it's", variable), "'it''s'")

    def test_include_all_strings_are_quoted(self):
        variable = TemplateVariable(name='node', value='a', include_all=True)
        self.assertEqual(interpolate_variable('a', variable), "'a'")

    def test_single_value_strings_pass_through(self):
        variable = TemplateVariable(name='node', value='router-1')
        self.assertEqual(interpolate_variable('router-1', variable), 'router-1')

    def test_numbers_are_never_quoted(self):
        variable = TemplateVariable(name='id', value=5, multi=True)
        self.assertEqual(interpolate_variable(5, variable), 5)

    def test_substitute_list_values(self):
        scoped_vars = {'node': TemplateVariable(name='node', value=['a', "b'c"], multi=True)}
        result = substitute_template_variables("WHERE Caption IN ($node)", scoped_vars)
        self.assertEqual(result, "WHERE Caption IN ('a','b''c')")

    def test_substitute_braced_and_longest_name(self):
        scoped_vars = {
            'host': TemplateVariable(name='host', value='h1'),
            'hostname': TemplateVariable(name='hostname', value='n1'),
        }
        result = substitute_template_variables("SELECT ${host}, $hostname, $host_x FROM T", scoped_vars)
        self.assertEqual(result, "SELECT h1, n1, $host_x FROM T")

    def test_unknown_variables_and_time_placeholders_are_left_alone(self):
        scoped_vars = {'node': TemplateVariable(name='node', value='n1')}
        result = substitute_template_variables("WHERE TS > $from AND Caption = '$node' AND X = $other", scoped_vars)
        self.assertEqual(result, "WHERE TS > $from AND Caption = 'n1' AND X = $other")

    def test_custom_interpolation_callback(self):
        scoped_vars = {'node': TemplateVariable(name='node', value='n1')}
        result = substitute_template_variables("$node", scoped_vars, lambda value, variable: value.upper())
        self.assertEqual(result, 'N1')


if __name__ == '__main__':
    unittest.main()
