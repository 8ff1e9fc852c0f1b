import unittest

from src.logging_config import LOGGER_NAME
from src.properties_parser import Entry, Message, join_lines
from src.resolver import assemble, build_edit_map, resolve_lookup_code


def _edit_map(*lines):
    return build_edit_map(join_lines(list(lines)))


class TestBuildEditMap(unittest.TestCase):

    def test_comments_and_blank_lines_are_ignored(self):
        edit_map = _edit_map('# comment', '', '!private', 'a=1', 'b:2')
        self.assertEqual(edit_map, {'a': Message('1'), 'b': Message('2')})

    def test_last_duplicate_wins(self):
        edit_map = _edit_map('a=first', 'b=x', 'a=second')
        self.assertEqual(edit_map['a'], Message('second'))
        self.assertEqual(list(edit_map), ['a', 'b'])

    def test_continued_message_keeps_its_breaks(self):
        edit_map = _edit_map('k=line1\\', 'line2')
        self.assertEqual(edit_map['k'], Message('line1line2', ((5, ''),)))


class TestResolveLookupCode(unittest.TestCase):

    def test_no_remap_entry_uses_code(self):
        self.assertEqual(resolve_lookup_code('X', {'X': 'a'}, {}), 'X')

    def test_first_present_candidate_wins(self):
        remap = {'X': ['A', 'B', 'C']}
        self.assertEqual(resolve_lookup_code('X', {'B': 'b', 'C': 'c'}, remap), 'B')
        self.assertEqual(resolve_lookup_code('X', {'A': 'a', 'B': 'b'}, remap), 'A')

    def test_falls_back_to_code_when_no_candidate_exists(self):
        self.assertEqual(resolve_lookup_code('X', {'X': 'orig'}, {'X': ['A']}), 'X')


class TestAssemble(unittest.TestCase):

    def test_remapped_message_is_written_under_template_code(self):
        output = assemble(join_lines(['X=template text']), {'B': Message('msg')}, {'X': ['A', 'B']})
        self.assertEqual(output, ['X=msg'])

    def test_fallback_to_own_code(self):
        output = assemble(join_lines(['X=whatever']), {'X': 'orig'}, {'X': ['A']})
        self.assertEqual(output, ['X=orig'])

    def test_missing_message_is_dropped_with_diagnostic(self):
        missing = []
        with self.assertLogs(LOGGER_NAME, level='WARNING') as logs:
            output = assemble(join_lines(['Y=template']), {}, {}, missing_codes=missing)
        self.assertEqual(output, [])
        self.assertEqual(missing, ['Y'])
        self.assertIn("No message found for code 'Y'", logs.output[0])

    def test_template_shape_and_comment_retention(self):
        template = join_lines(['#hdr', '!private', 'a=1', 'b=2'])
        with self.assertLogs(LOGGER_NAME, level='WARNING') as logs:
            output = assemble(template, _edit_map('a=uno'), {})
        self.assertEqual(output, ['#hdr', 'a=uno'])
        self.assertEqual(len(logs.output), 1)
        self.assertIn("'b'", logs.output[0])

    def test_output_follows_template_order(self):
        template = join_lines(['c=', '', 'a=', 'b='])
        edit_map = _edit_map('a=1', 'b=2', 'c=3')
        self.assertEqual(assemble(template, edit_map, {}), ['c=3', '', 'a=1', 'b=2'])

    def test_continued_message_is_expanded_on_output(self):
        output = assemble(join_lines(['k=old']), _edit_map('k=line1\\', '   line2'), {})
        self.assertEqual(output, ['k=line1\\\n   line2'])

    def test_leading_non_breaking_space_of_message_is_kept(self):
        output = assemble(join_lines(['k=x']), _edit_map('k=\xa0suite'), {})
        self.assertEqual(output, ['k=\xa0suite'])

    def test_plain_string_messages(self):
        output = assemble(join_lines(['X=1', 'Y=2']), {'A': 'from a', 'Y': 'own'}, {'X': ['A']})
        self.assertEqual(output, ['X=from a', 'Y=own'])

    def test_continued_template_entry_uses_only_its_code(self):
        output = assemble(join_lines(['k=first\\', 'second']), _edit_map('k=new'), {})
        self.assertEqual(output, ['k=new'])

    def test_entries_never_outnumber_template_codes(self):
        template = join_lines(['# c', 'a=1', 'b=2', 'c=3'])
        with self.assertLogs(LOGGER_NAME, level='WARNING'):
            output = assemble(template, _edit_map('a=x', 'c=z', 'd=unused'), {})
        entries = [line for line in output if not line.startswith('#')]
        self.assertEqual(entries, ['a=x', 'c=z'])
        self.assertLessEqual(len(entries), sum(isinstance(line, Entry) for line in template))

    def test_inputs_are_not_modified(self):
        template = join_lines(['X=1'])
        edit_map = {'A': Message('a')}
        remap = {'X': ['A']}
        assemble(template, edit_map, remap)
        self.assertEqual(edit_map, {'A': Message('a')})
        self.assertEqual(remap, {'X': ['A']})


if __name__ == '__main__':
    unittest.main()
