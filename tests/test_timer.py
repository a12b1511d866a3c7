import pytest

from dmgemu.interrupts import Interrupt, Interrupts
from dmgemu.timer import Timer


def test_defaults():
    t = Timer()
    assert t.div == 0xAB
    assert t.tac == 0xF8
    assert (t.tima, t.tma) == (0, 0)


def test_count_cycles_without_timer_enabled():
    t = Timer()
    t.count_cycles(10)
    assert t.frame_clock == 10
    assert t.div_clock == 10
    assert t.tima_clock == 0


def test_count_cycles_with_timer_enabled():
    t = Timer(tac=0x04)
    t.count_cycles(7)
    assert t.tima_clock == 7


def test_div_advances_every_64_cycles():
    t = Timer(div=0)
    t.count_cycles(64 * 3 + 5)
    t.update()
    assert t.div == 3
    assert t.div_clock == 5


def test_div_wraps():
    t = Timer(div=0xFF)
    t.count_cycles(64)
    t.update()
    assert t.div == 0


@pytest.mark.parametrize("select,period", [(0, 256), (1, 4), (2, 16), (3, 64)])
def test_tima_period(select, period):
    t = Timer(tac=0x04 | select)
    t.count_cycles(period - 1)
    t.update()
    assert t.tima == 0
    t.count_cycles(1)
    t.update()
    assert t.tima == 1
    assert t.tima_clock == 0


def test_tima_counts_several_steps():
    t = Timer(tac=0x05)
    t.count_cycles(4 * 2)
    t.update()
    assert t.tima == 2


def test_tima_disabled_does_not_count():
    t = Timer(tac=0x01)
    t.count_cycles(1000)
    t.update()
    assert t.tima == 0


def test_tima_overflow_reloads_and_requests_interrupt():
    interrupts = Interrupts()
    interrupts.if_ = 0
    t = Timer(interrupts=interrupts, tac=0x05, tima=0xFF, tma=0x42)
    t.count_cycles(4)
    t.update()
    assert t.tima == 0x42
    assert interrupts.if_ & Interrupt.TIMER