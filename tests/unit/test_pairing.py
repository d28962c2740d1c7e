"""Unit tests for pairing PIN generation and trust-state transitions."""

from __future__ import annotations

import random
from collections import Counter

import pytest

from conftest import FakeBackend
from streamctl.common.errors import PairingFailure
from streamctl.common.reporter import Reporter
from streamctl.gamestream import library as gs
from streamctl.gamestream.client import SessionClient
from streamctl.gamestream.pairing import PairingState, pin_generate


class _ConstantRandom(random.Random):
    """Random source that always yields the same digit."""

    def __init__(self, digit: int) -> None:
        super().__init__()
        self._digit = digit

    def randrange(self, *args, **kwargs) -> int:  # type: ignore[override]
        return self._digit


def _pairing_make(fake_backend: FakeBackend, server_handle, seed: int = 7) -> PairingState:
    client = SessionClient(fake_backend.library, fake_backend.transport)
    return PairingState(client, server_handle, Reporter(), rng=random.Random(seed))


class TestPinGenerate:
    """Tests for PIN shape and distribution."""

    def test_pin_is_four_digits(self) -> None:
        """Every PIN is exactly four decimal digits."""
        rng = random.Random(1)
        for _ in range(500):
            pin = pin_generate(rng)
            assert len(pin) == 4
            assert pin.isdigit()

    def test_extremes_reachable(self) -> None:
        """0000 and 9999 are valid outputs."""
        assert pin_generate(_ConstantRandom(0)) == "0000"
        assert pin_generate(_ConstantRandom(9)) == "9999"

    def test_digits_uniform_per_position(self) -> None:
        """Each position is roughly uniform over 0-9."""
        rng = random.Random(20240601)
        samples = 20000
        positions = [Counter() for _ in range(4)]
        for _ in range(samples):
            for index, digit in enumerate(pin_generate(rng)):
                positions[index][digit] += 1

        expected = samples / 10
        for counter in positions:
            assert set(counter) == set("0123456789")
            chi_square = sum((counter[d] - expected) ** 2 / expected for d in "0123456789")
            # 9 degrees of freedom, p=0.001 critical value is 27.88
            assert chi_square < 27.88


class TestPairingState:
    """Tests for the paired flag lifecycle."""

    def test_unpaired_until_pair_succeeds(self, fake_backend: FakeBackend, server_handle, capsys) -> None:
        """pair_check flips only after a successful pair."""
        pairing = _pairing_make(fake_backend, server_handle)
        assert pairing.pair_check() is False

        pairing.pair()

        assert pairing.pair_check() is True
        pin = fake_backend.library.calls[-1][2]
        assert f"Please enter the following PIN on the target PC: {pin}" in capsys.readouterr().out

    def test_failed_pair_keeps_flag(self, fake_backend: FakeBackend, server_handle) -> None:
        """A failing pair never changes the flag."""
        fake_backend.library.pair_code = gs.GS_FAILED
        pairing = _pairing_make(fake_backend, server_handle)

        with pytest.raises(PairingFailure):
            pairing.pair()
        assert pairing.pair_check() is False

    def test_repair_while_paired_runs_rpc(self, fake_backend: FakeBackend, server_handle) -> None:
        """Re-pairing is allowed and performs the RPC again."""
        server_handle.paired = True
        pairing = _pairing_make(fake_backend, server_handle)

        pairing.pair()

        assert fake_backend.library.callNames_get() == ["server_pair"]
        assert pairing.pair_check() is True

    def test_unpair_clears_flag(self, fake_backend: FakeBackend, server_handle) -> None:
        """Successful unpair makes pair_check false immediately."""
        server_handle.paired = True
        pairing = _pairing_make(fake_backend, server_handle)

        pairing.unpair()

        assert pairing.pair_check() is False

    def test_failed_unpair_keeps_flag(self, fake_backend: FakeBackend, server_handle) -> None:
        """A failing unpair leaves the host paired."""
        server_handle.paired = True
        fake_backend.library.unpair_code = gs.GS_IO_ERROR
        pairing = _pairing_make(fake_backend, server_handle)

        with pytest.raises(PairingFailure):
            pairing.unpair()
        assert pairing.pair_check() is True

    def test_unpair_twice_follows_each_rpc(self, fake_backend: FakeBackend, server_handle) -> None:
        """Unpairing an unpaired host still calls the RPC every time."""
        pairing = _pairing_make(fake_backend, server_handle)

        pairing.unpair()
        assert pairing.pair_check() is False
        pairing.unpair()
        assert pairing.pair_check() is False

        assert fake_backend.library.callNames_get() == ["server_unpair", "server_unpair"]
