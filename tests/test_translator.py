import pytest

from musiccast_cec.services.translator import CommandTranslator, encode_audio_status
from musiccast_cec.services.types import CecCommand, CecOpcode, LogicalAddress, UserControlCode

from conftest import FakeBus, INPUT, VOLUME, zone_status


def cmd(opcode, *params, initiator=LogicalAddress.TV, destination=LogicalAddress.AUDIOSYSTEM):
    return CecCommand(int(initiator), int(destination), int(opcode), tuple(params))


class TestEncodeAudioStatus:

    def test_half_volume_unmuted(self):
        assert encode_audio_status(50, 100, False) == 0x32

    def test_full_volume_muted(self):
        assert encode_audio_status(100, 100, True) == 0xF0 | 0x64

    def test_scales_to_max_volume(self):
        # 80/161 * 100 = 49.69 -> 49
        assert encode_audio_status(80, 161, False) == 49

    def test_zero_volume_muted(self):
        assert encode_audio_status(0, 161, True) == 0xF0


class TestSystemAudioMode:

    def test_non_empty_request_turns_on_and_replies_1(self, translator, zone, bus, power):
        translator.handle(cmd(CecOpcode.SYSTEM_AUDIO_MODE_REQUEST, 0x00, 0x10))

        assert power.is_on is True
        assert [c[0] for c in zone.calls] == ["set_power", "set_input", "set_volume"]
        assert bus.sent == [(LogicalAddress.TV, CecOpcode.SET_SYSTEM_AUDIO_MODE, (1,))]

    def test_payload_value_does_not_matter(self, translator, bus, power):
        translator.handle(cmd(CecOpcode.SYSTEM_AUDIO_MODE_REQUEST, 0x00))
        assert power.is_on is True
        assert bus.sent[-1][2] == (1,)

    def test_empty_request_turns_off_and_replies_0(self, translator, zone, bus, power):
        power.update(True)
        zone.calls.clear()

        translator.handle(cmd(CecOpcode.SYSTEM_AUDIO_MODE_REQUEST))

        assert power.is_on is False
        assert zone.calls == [("get_status",), ("set_power", "standby")]
        assert bus.sent == [(LogicalAddress.TV, CecOpcode.SET_SYSTEM_AUDIO_MODE, (0,))]

    def test_empty_request_while_off_still_replies(self, translator, zone, bus):
        translator.handle(cmd(CecOpcode.SYSTEM_AUDIO_MODE_REQUEST))
        assert zone.calls == []
        assert bus.sent == [(LogicalAddress.TV, CecOpcode.SET_SYSTEM_AUDIO_MODE, (0,))]

    def test_transmit_failure_keeps_state(self, power, zone):
        bus = FakeBus(ok=False)
        translator = CommandTranslator(power, zone, bus)

        translator.handle(cmd(CecOpcode.SYSTEM_AUDIO_MODE_REQUEST, 0x00, 0x10))

        assert power.is_on is True
        assert len(bus.sent) == 1
        # the next command is still handled
        translator.handle(cmd(CecOpcode.STANDBY))
        assert power.is_on is False


class TestUserControl:

    def test_volume_up(self, translator, zone, bus):
        translator.handle(cmd(CecOpcode.USER_CONTROL_PRESSED, UserControlCode.VOLUME_UP))
        assert zone.calls == [("volume_up",)]
        assert bus.sent == []

    def test_volume_down(self, translator, zone):
        translator.handle(cmd(CecOpcode.USER_CONTROL_PRESSED, UserControlCode.VOLUME_DOWN))
        assert zone.calls == [("volume_down",)]

    @pytest.mark.parametrize("keycode", [UserControlCode.MUTE, 0x00, 0x40, 0x91])
    def test_other_keys_ignored(self, translator, zone, bus, keycode):
        translator.handle(cmd(CecOpcode.USER_CONTROL_PRESSED, keycode))
        assert zone.calls == []
        assert bus.sent == []

    def test_empty_payload_ignored(self, translator, zone):
        translator.handle(cmd(CecOpcode.USER_CONTROL_PRESSED))
        assert zone.calls == []

    def test_volume_failure_is_logged_not_raised(self, translator, zone, caplog):
        zone.fail.add("volume_up")
        translator.handle(cmd(CecOpcode.USER_CONTROL_PRESSED, UserControlCode.VOLUME_UP))
        assert zone.calls == [("volume_up",)]
        assert "volume step failed" in caplog.text


class TestStandby:

    def test_standby_powers_off(self, translator, zone, power):
        power.update(True)
        zone.calls.clear()

        translator.handle(cmd(CecOpcode.STANDBY, destination=LogicalAddress.BROADCAST))

        assert power.is_on is False
        assert zone.calls == [("get_status",), ("set_power", "standby")]

    def test_standby_respects_other_input(self, translator, zone, power):
        power.update(True)
        zone.status = zone_status(input="OTHER")
        zone.calls.clear()

        translator.handle(cmd(CecOpcode.STANDBY))

        assert zone.calls == [("get_status",)]
        assert power.is_on is False


class TestAudioStatus:

    def test_reports_scaled_volume(self, translator, zone, bus):
        zone.status = zone_status(volume=50, max_volume=100, mute=False)

        translator.handle(cmd(CecOpcode.GIVE_AUDIO_STATUS))

        assert bus.sent == [(LogicalAddress.TV, CecOpcode.REPORT_AUDIO_STATUS, (0x32,))]

    def test_reports_mute(self, translator, zone, bus):
        zone.status = zone_status(volume=100, max_volume=100, mute=True)

        translator.handle(cmd(CecOpcode.GIVE_AUDIO_STATUS))

        assert bus.sent == [(LogicalAddress.TV, CecOpcode.REPORT_AUDIO_STATUS, (0xF4,))]

    def test_fetches_fresh_status_each_time(self, translator, zone, bus):
        translator.handle(cmd(CecOpcode.GIVE_AUDIO_STATUS))
        zone.status = zone_status(volume=10, max_volume=100)
        translator.handle(cmd(CecOpcode.GIVE_AUDIO_STATUS))

        assert [s[2] for s in bus.sent] == [(50,), (10,)]
        assert zone.calls == [("get_status",), ("get_status",)]

    def test_no_reply_when_status_unavailable(self, translator, zone, bus):
        zone.status = None
        translator.handle(cmd(CecOpcode.GIVE_AUDIO_STATUS))
        assert bus.sent == []


def test_unknown_opcode_ignored(translator, zone, bus):
    translator.handle(cmd(0x82, 0x10, 0x00))
    translator.handle(cmd(0x8F))
    assert zone.calls == []
    assert bus.sent == []
