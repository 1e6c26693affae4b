from __future__ import annotations

from ircwire.irc.parser import (
    build_join,
    build_nick,
    build_part,
    build_pong,
    build_privmsg,
    build_quit,
    build_user,
    encode_line,
    parse_line,
)


def test_parse_privmsg_with_prefix_and_trailing():
    line = parse_line(":nick!user@host PRIVMSG #chan :hello world")
    assert line.nick == "nick"
    assert line.src == "nick!user@host"
    assert line.command == "PRIVMSG"
    assert line.args == ["#chan", "hello world"]


def test_parse_without_prefix():
    line = parse_line("PING :server.example")
    assert line.src == ""
    assert line.nick == ""
    assert line.command == "PING"
    assert line.args == ["server.example"]


def test_parse_bare_command_has_no_args():
    line = parse_line("PING")
    assert line.command == "PING"
    assert line.args == []


def test_server_prefix_without_bang_has_no_nick():
    line = parse_line(":irc.example.net 001 tester :Welcome to the network")
    assert line.src == "irc.example.net"
    assert line.nick == ""
    assert line.command == "001"
    assert line.args == ["tester", "Welcome to the network"]


def test_command_is_uppercased():
    assert parse_line("privmsg #c :hi").command == "PRIVMSG"


def test_trailing_keeps_colons_and_inner_spacing():
    line = parse_line(":a!b@c PRIVMSG #c :see: this  spaced :text")
    assert line.args == ["#c", "see: this  spaced :text"]


def test_empty_trailing_parameter():
    line = parse_line(":a!b@c PRIVMSG #c :")
    assert line.args == ["#c", ""]


def test_middle_params_before_trailing():
    line = parse_line(":srv 353 tester = #chan :@alice +bob carol")
    assert line.args == ["tester", "=", "#chan", "@alice +bob carol"]


def test_prefix_only_line_yields_empty_command():
    line = parse_line(":nick!user@hostPRIVMSG#chan:hello")
    assert line.command == ""
    assert line.args == []
    assert line.raw == ":nick!user@hostPRIVMSG#chan:hello"


def test_arg_helper_defaults():
    line = parse_line("JOIN #chan")
    assert line.arg(0) == "#chan"
    assert line.arg(3) == ""
    assert line.arg(3, "x") == "x"


def test_command_builders():
    assert build_nick("tester") == "NICK tester"
    assert build_user("tuser", "Test User") == "USER tuser 0 * :Test User"
    assert build_join("#chan") == "JOIN #chan"
    assert build_part("#chan") == "PART #chan"
    assert build_privmsg("#chan", "hi there") == "PRIVMSG #chan :hi there"


def test_quit_and_pong_with_and_without_argument():
    assert build_quit() == "QUIT"
    assert build_quit("bye now") == "QUIT :bye now"
    assert build_pong() == "PONG"
    assert build_pong("server.example") == "PONG :server.example"


def test_encode_line_appends_crlf():
    assert encode_line("JOIN #chan") == b"JOIN #chan\r\n"


def test_outbound_privmsg_parses_back():
    line = parse_line(build_privmsg("#chan", "hello world"))
    assert line.command == "PRIVMSG"
    assert line.args == ["#chan", "hello world"]
