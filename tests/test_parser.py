"""
Tests for tokenizing, pipeline splitting and redirection parsing.
"""

import os
import stat
import tempfile
import unittest

from PipeShell.errors import (
    AmbiguousRedirection,
    EmptyCommand,
    EmptyStage,
    MissingRedirectionTarget,
    RedirectionOpenFailure,
)
from PipeShell.parser import (
    RedirectionSpec,
    open_redirections,
    parse_command,
    parse_redirections,
    resolve_redirections,
    split_pipeline,
    tokenize,
)


class TestTokenize(unittest.TestCase):

    def test_whitespace_split(self):
        self.assertEqual(tokenize("  ls   -l\t/tmp "), (["ls", "-l", "/tmp"], False))

    def test_no_quoting(self):
        tokens, _ = tokenize("echo 'a b' \"c\" \\d #e")
        self.assertEqual(tokens, ["echo", "'a", "b'", '"c"', "\\d", "#e"])

    def test_empty_line(self):
        with self.assertRaises(EmptyCommand):
            tokenize("")
        with self.assertRaises(EmptyCommand):
            tokenize("   \t ")

    def test_standalone_marker(self):
        self.assertEqual(tokenize("sleep 5 &"), (["sleep", "5"], True))

    def test_attached_marker(self):
        self.assertEqual(tokenize("sleep 5&"), (["sleep", "5"], True))

    def test_marker_in_middle_is_text(self):
        self.assertEqual(tokenize("echo a & b"), (["echo", "a", "&", "b"], False))

    def test_only_marker(self):
        with self.assertRaises(EmptyCommand):
            tokenize("&")

    def test_only_last_marker_stripped(self):
        self.assertEqual(tokenize("echo x&&"), (["echo", "x&"], True))


class TestSplitPipeline(unittest.TestCase):

    def test_single_stage(self):
        tokens = ["grep", "-v", "foo", "<", "in.txt"]
        self.assertEqual(split_pipeline(tokens), [tokens])

    def test_stages_rejoin_to_input(self):
        tokens = ["cat", "f", "|", "sort", "|", "uniq", "-c", "|", "head"]
        stages = split_pipeline(tokens)
        self.assertEqual(len(stages), 4)
        rejoined = []
        for i, stage in enumerate(stages):
            if i:
                rejoined.append("|")
            rejoined.extend(stage)
        self.assertEqual(rejoined, tokens)

    def test_empty_segments(self):
        for tokens in (["a", "|", "|", "b"], ["|", "a"], ["a", "|"]):
            with self.subTest(tokens=tokens):
                with self.assertRaises(EmptyStage):
                    split_pipeline(tokens)

    def test_parse_command(self):
        stages, background = parse_command("ls | wc -l &")
        self.assertEqual(stages, [["ls"], ["wc", "-l"]])
        self.assertTrue(background)


class TestParseRedirections(unittest.TestCase):

    def test_no_redirection(self):
        args, spec = parse_redirections(["echo", "hi"])
        self.assertEqual(args, ["echo", "hi"])
        self.assertEqual(spec, RedirectionSpec())

    def test_input_and_output(self):
        args, spec = parse_redirections(["cat", "<", "in.txt", ">", "out.txt"])
        self.assertEqual(args, ["cat"])
        self.assertEqual(spec, RedirectionSpec(input="in.txt", output="out.txt"))

    def test_operators_anywhere(self):
        args, spec = parse_redirections([">>", "log", "echo", "a", "b"])
        self.assertEqual(args, ["echo", "a", "b"])
        self.assertEqual(spec.append, "log")
        self.assertEqual(spec.stdout_target, "log")

    def test_missing_target(self):
        for stage in (["cat", "<"], ["cat", ">", ">>", "x"], ["ls", ">>"]):
            with self.subTest(stage=stage):
                with self.assertRaises(MissingRedirectionTarget):
                    parse_redirections(stage)

    def test_output_and_append_is_ambiguous(self):
        with self.assertRaises(AmbiguousRedirection) as ctx:
            parse_redirections(["ls", ">", "a", ">>", "b"])
        self.assertEqual(ctx.exception.operators, (">", ">>"))

    def test_repeated_input_is_ambiguous(self):
        with self.assertRaises(AmbiguousRedirection):
            parse_redirections(["cat", "<", "a", "<", "b"])

    def test_redirection_without_command(self):
        with self.assertRaises(EmptyStage):
            parse_redirections(["<", "in.txt"])


class TestOpenRedirections(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = self.tmp.name

    def tearDown(self):
        self.tmp.cleanup()

    def path(self, name):
        return os.path.join(self.dir, name)

    def test_resolve_input_and_output(self):
        with open(self.path("in.txt"), "w") as f:
            f.write("data")
        with open(self.path("out.txt"), "w") as f:
            f.write("old contents")

        args, bindings = resolve_redirections(
            ["cat", "<", self.path("in.txt"), ">", self.path("out.txt")])
        try:
            self.assertEqual(args, ["cat"])
            self.assertEqual(bindings.stdin_name, self.path("in.txt"))
            self.assertEqual(bindings.stdout_name, self.path("out.txt"))
            self.assertEqual(os.read(bindings.stdin, 10), b"data")
            self.assertEqual(os.path.getsize(self.path("out.txt")), 0)
            os.write(bindings.stdout, b"new")
        finally:
            bindings.close()

        with open(self.path("out.txt")) as f:
            self.assertEqual(f.read(), "new")

    def test_output_created_with_0644(self):
        old = os.umask(0)
        try:
            bindings = open_redirections(RedirectionSpec(output=self.path("new.txt")))
            bindings.close()
        finally:
            os.umask(old)
        mode = stat.S_IMODE(os.stat(self.path("new.txt")).st_mode)
        self.assertEqual(mode, 0o644)

    def test_append_keeps_contents(self):
        with open(self.path("log"), "w") as f:
            f.write("one\n")
        bindings = open_redirections(RedirectionSpec(append=self.path("log")))
        self.assertEqual(bindings.stdout_name, self.path("log"))
        os.write(bindings.stdout, b"two\n")
        bindings.close()
        with open(self.path("log")) as f:
            self.assertEqual(f.read(), "one\ntwo\n")

    def test_missing_input_file(self):
        with self.assertRaises(RedirectionOpenFailure) as ctx:
            open_redirections(RedirectionSpec(input=self.path("nope")))
        self.assertEqual(ctx.exception.filename, self.path("nope"))
        self.assertIn("nope", str(ctx.exception))

    def test_failure_closes_earlier_descriptor(self):
        with open(self.path("in.txt"), "w"):
            pass
        before = len(os.listdir("/proc/self/fd")) if os.path.isdir("/proc/self/fd") else None
        with self.assertRaises(RedirectionOpenFailure):
            open_redirections(RedirectionSpec(
                input=self.path("in.txt"),
                output=os.path.join(self.path("missing-dir"), "out.txt"),
            ))
        if before is not None:
            self.assertEqual(len(os.listdir("/proc/self/fd")), before)

    def test_close_is_idempotent(self):
        bindings = open_redirections(RedirectionSpec(output=self.path("x")))
        bindings.close()
        bindings.close()
        self.assertEqual(bindings.fds(), [])


if __name__ == "__main__":
    unittest.main()
