import argparse
import json
import os
import unittest
import tempfile
from io import StringIO
from unittest.mock import patch
from joitize.joitize import main

def get_joi():
    """Provides the Joi describe() input file path."""
    return os.path.join(os.path.dirname(__file__), 'joi', 'user.json')

class TestMain(unittest.TestCase):

    @patch('argparse.ArgumentParser.parse_args', return_value=argparse.Namespace(command=None))
    def test_main_no_command(self, mock_parse_args):
        """Test main function with no command."""
        with patch('builtins.print'):
            main()

    @patch('argparse.ArgumentParser.parse_args', return_value=argparse.Namespace(command=None, version=True))
    def test_main_version(self, mock_parse_args):
        """Test main function with --version."""
        with patch('builtins.print') as mock_print:
            main()
        self.assertIn('Joi 12', mock_print.call_args[0][0])

    @patch('argparse.ArgumentParser.parse_args', return_value=argparse.Namespace(command='jd2j', input=get_joi(), out=tempfile.gettempdir() + '/output.schema.json', joi_version='12.1.1'))
    def test_main_jd2j_command(self, mock_parse_args):
        """Test main function with jd2j command."""
        main()
        assert os.path.exists(tempfile.gettempdir() + '/output.schema.json')
        with open(tempfile.gettempdir() + '/output.schema.json', 'r', encoding='utf-8') as f:
            schema = json.load(f)
        self.assertEqual(schema['required'], ['id', 'name'])

    @patch('argparse.ArgumentParser.parse_args', return_value=argparse.Namespace(command='jd2j', input=get_joi(), out=None, joi_version=None))
    def test_main_jd2j_to_stdout(self, mock_parse_args):
        """Test main function writing the schema to stdout."""
        with patch('sys.stdout', new_callable=StringIO) as mock_stdout:
            main()
        schema = json.loads(mock_stdout.getvalue())
        self.assertEqual(schema['type'], 'object')

    @patch('argparse.ArgumentParser.parse_args', return_value=argparse.Namespace(command='jd2j', input=None, out=None, joi_version=None))
    def test_main_jd2j_from_stdin(self, mock_parse_args):
        """Test main function reading the description from stdin."""
        with patch('sys.stdin', StringIO('{"type": "date"}')), \
                patch('sys.stdout', new_callable=StringIO) as mock_stdout:
            main()
        self.assertEqual(json.loads(mock_stdout.getvalue()), {"type": "string", "format": "date-time"})

    @patch('argparse.ArgumentParser.parse_args', return_value=argparse.Namespace(command='jd2j', input='missing.json', out=None, joi_version=None))
    def test_main_jd2j_missing_input(self, mock_parse_args):
        """Test main function with an input file that does not exist."""
        with patch('builtins.print') as mock_print:
            with self.assertRaises(SystemExit) as ctx:
                main()
        self.assertEqual(ctx.exception.code, 1)
        self.assertEqual(mock_print.call_args[0][0], "Error: ")

if __name__ == '__main__':
    unittest.main()
