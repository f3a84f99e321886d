"""
Integration tests for AHFC.

Tests end-to-end workflows combining multiple modules:
- Command line entry point
- Audit events around encrypt/decrypt
- Password sources
"""

import os
import tempfile
from unittest.mock import patch

import pytest

from ahfc.auth.password import (
    FilePasswordSource, PromptPasswordSource, StaticPasswordSource,
    as_password_source, check_password_length, password_length
)
from ahfc.core_crypto.modes import BEAST, LITE
from ahfc.errors import FormatError, InputError, IntegrityError
from ahfc.files.file_crypto import FileEncryptor
from ahfc.integration.event_logger import EventLogger, EventType, SecurityEvent, get_file_id
from ahfc.main import TqdmProgress, build_parser, main


BEAST_PASSWORD = "twenty-four-characters!!"


def write_file(path: str, data: bytes) -> str:
    with open(path, "wb") as f:
        f.write(data)
    return path


class TestCommandLine:
    """Tests for the ahfc command."""

    def test_encrypt_decrypt_with_password_file(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            pw_file = os.path.join(tmpdir, "pw.txt")
            with open(pw_file, "w", encoding="utf-8") as f:
                f.write(BEAST_PASSWORD + "\n")
            input_path = write_file(os.path.join(tmpdir, "in.txt"), b"cli payload" * 20)
            enc_path = os.path.join(tmpdir, "out.ahfc")
            dec_path = os.path.join(tmpdir, "dec.txt")

            assert main(["--password-file", pw_file, "--no-progress",
                         "encrypt", input_path, enc_path, "--beast"]) == 0
            assert main(["--password-file", pw_file, "--no-progress",
                         "decrypt", enc_path, dec_path]) == 0

            with open(dec_path, "rb") as f:
                assert f.read() == b"cli payload" * 20
            assert "File decrypted successfully!" in capsys.readouterr().out

    def test_prompted_password(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_file(os.path.join(tmpdir, "in.txt"), b"prompted")
            enc_path = os.path.join(tmpdir, "out.ahfc")
            with patch("ahfc.auth.password.getpass.getpass", return_value="test"):
                assert main(["--no-progress", "encrypt", input_path, enc_path, "-l"]) == 0

    def test_wrong_password_exit_code(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_file(os.path.join(tmpdir, "in.txt"), b"secret")
            enc_path = os.path.join(tmpdir, "out.ahfc")
            dec_path = os.path.join(tmpdir, "dec.txt")
            FileEncryptor("test").encrypt_file(input_path, enc_path, "lite")

            pw_file = write_file(os.path.join(tmpdir, "pw.txt"), b"fail")
            with patch("ahfc.files.integrity.time.sleep") as mock_sleep:
                code = main(["--password-file", pw_file, "--no-progress",
                             "decrypt", enc_path, dec_path])

            assert code == 1
            mock_sleep.assert_called_once_with(1.0)
            assert not os.path.exists(dec_path)
            assert "Signature verification failed" in capsys.readouterr().err

    def test_short_password_exit_code(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_file(os.path.join(tmpdir, "in.txt"), b"secret")
            enc_path = os.path.join(tmpdir, "out.ahfc")
            pw_file = write_file(os.path.join(tmpdir, "pw.txt"), b"short")

            code = main(["--password-file", pw_file, "--no-progress",
                         "encrypt", input_path, enc_path, "--beast"])

            assert code == 1
            assert not os.path.exists(enc_path)
            assert "at least 24 characters" in capsys.readouterr().err

    def test_unwritable_output_exit_code(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_file(os.path.join(tmpdir, "in.txt"), b"secret")
            pw_file = write_file(os.path.join(tmpdir, "pw.txt"), b"test")
            enc_path = os.path.join(tmpdir, "nope", "out.ahfc")

            code = main(["--password-file", pw_file, "--no-progress",
                         "encrypt", input_path, enc_path, "--lite"])

            assert code == 1
            assert "Cannot write output file" in capsys.readouterr().err

    def test_info_command(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_file(os.path.join(tmpdir, "in.txt"), b"info")
            enc_path = os.path.join(tmpdir, "out.ahfc")
            FileEncryptor("test").encrypt_file(input_path, enc_path, "lite")

            assert main(["info", enc_path]) == 0
            out = capsys.readouterr().out
            assert "mode: lite" in out
            assert "version: AHFCv1" in out

    def test_default_mode_flag(self):
        args = build_parser().parse_args(["encrypt", "a", "b"])
        assert args.mode is None
        args = build_parser().parse_args(["encrypt", "a", "b", "--normal"])
        assert args.mode == "normal"

    def test_conflicting_mode_flags(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["encrypt", "a", "b", "--lite", "--beast"])

    def test_progress_sink(self):
        progress = TqdmProgress("Testing", disable=True)
        progress(1, 3)
        progress(3, 3)
        assert progress.done == 3
        progress.close()
        assert progress._bar is None


class TestAuditEvents:
    """Event logger wired into FileEncryptor."""

    def test_encrypt_decrypt_events(self):
        events = EventLogger()
        encryptor = FileEncryptor("test", event_logger=events)
        blob = encryptor.encrypt_bytes(b"payload", "lite")
        encryptor.decrypt_bytes(blob)

        logged = events.get_all_events()
        assert [e.event_type for e in logged] == [EventType.FILE_ENCRYPT, EventType.FILE_DECRYPT]
        assert logged[0].details['file_id'] == get_file_id(blob)
        assert logged[0].details['mode'] == "lite"
        assert logged[1].details['output_size'] == len(b"payload")

    def test_integrity_failure_event(self):
        events = EventLogger()
        blob = FileEncryptor("test").encrypt_bytes(b"payload", "lite")
        with pytest.raises(IntegrityError):
            FileEncryptor("fail", failure_delay=0, event_logger=events).decrypt_bytes(blob)
        failures = events.get_events_by_type(EventType.FILE_INTEGRITY_FAILED)
        assert len(failures) == 1
        assert set(failures[0].details) == {'file_id', 'mode'}

    def test_format_rejected_event(self):
        events = EventLogger()
        with pytest.raises(FormatError):
            FileEncryptor("test", event_logger=events).decrypt_bytes(b"garbage")
        assert events.get_events_by_type(EventType.FILE_FORMAT_REJECTED)

    def test_callbacks(self):
        events = EventLogger()
        seen = []
        events.add_callback(seen.append)
        FileEncryptor("test", event_logger=events).encrypt_bytes(b"x", "lite")
        events.remove_callback(seen.append)
        FileEncryptor("test", event_logger=events).encrypt_bytes(b"y", "lite")
        assert len(seen) == 1
        assert isinstance(seen[0], SecurityEvent)

    def test_failing_callback_keeps_integrity_error(self):
        events = EventLogger()

        def broken(event):
            raise RuntimeError("observer failed")

        events.add_callback(broken)
        blob = FileEncryptor("test").encrypt_bytes(b"payload", "lite")
        with pytest.raises(IntegrityError):
            FileEncryptor("fail", failure_delay=0, event_logger=events).decrypt_bytes(blob)
        assert events.get_events_by_type(EventType.FILE_INTEGRITY_FAILED)

    def test_failing_callback_keeps_encryption(self):
        events = EventLogger()
        events.add_callback(lambda event: 1 / 0)
        seen = []
        events.add_callback(seen.append)

        blob = FileEncryptor("test", event_logger=events).encrypt_bytes(b"payload", "lite")

        assert FileEncryptor("test").decrypt_bytes(blob) == b"payload"
        assert len(seen) == 1

    def test_export_import(self):
        events = EventLogger()
        FileEncryptor("test", event_logger=events).encrypt_bytes(b"x", "lite")
        restored = EventLogger.import_log(events.export_log())
        assert len(restored.get_all_events()) == 1
        assert restored.get_all_events()[0].event_type == EventType.FILE_ENCRYPT
        assert events.get_recent_events(5) == events.get_all_events()


class TestPasswordSources:
    """Tests for password supply boundary."""

    def test_static_source(self):
        assert StaticPasswordSource("abcd").get_password() == "abcd"

    def test_static_source_requires_string(self):
        with pytest.raises(InputError):
            StaticPasswordSource(b"bytes")

    def test_as_password_source(self):
        source = StaticPasswordSource("abcd")
        assert as_password_source(source) is source
        assert as_password_source("abcd").get_password() == "abcd"

    def test_prompt_source(self):
        prompts = []

        def fake_getpass(prompt):
            prompts.append(prompt)
            return "typed"

        assert PromptPasswordSource(fake_getpass).get_password("Password: ") == "typed"
        assert prompts == ["Password: "]

    def test_prompt_source_interrupted(self):
        def interrupted(prompt):
            raise KeyboardInterrupt

        with pytest.raises(InputError):
            PromptPasswordSource(interrupted).get_password()

    def test_file_source(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_file(os.path.join(tmpdir, "pw"), "pässwörd\nignored\n".encode())
            assert FilePasswordSource(path).get_password() == "pässwörd"

    def test_file_source_missing(self):
        with pytest.raises(InputError):
            FilePasswordSource("/nonexistent/ahfc/password").get_password()

    def test_check_password_length(self):
        check_password_length("test", LITE)
        with pytest.raises(InputError):
            check_password_length("tes", LITE)
        with pytest.raises(InputError):
            check_password_length("x" * 23, BEAST)

    def test_length_counts_utf16_units(self):
        assert password_length("test") == 4
        assert password_length("ab\U0001F600") == 4
        check_password_length("ab\U0001F600", LITE)
        check_password_length("\U0001F600" * 12, BEAST)
        with pytest.raises(InputError):
            check_password_length("\U0001F600" * 11 + "x", BEAST)

    def test_source_used_once_per_operation(self):
        calls = []

        def fake_getpass(prompt):
            calls.append(prompt)
            return "test"

        encryptor = FileEncryptor(PromptPasswordSource(fake_getpass))
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_file(os.path.join(tmpdir, "in.txt"), b"data")
            enc_path = os.path.join(tmpdir, "out.ahfc")
            encryptor.encrypt_file(input_path, enc_path, "lite")
        assert len(calls) == 1
