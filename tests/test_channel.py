import asyncio

import pytest

from login.channel import OutcomeChannel


@pytest.mark.asyncio
async def test_send_then_receive() -> None:
    channel: OutcomeChannel[str] = OutcomeChannel()

    assert channel.send("token") is True
    assert await channel.receive() == "token"


@pytest.mark.asyncio
async def test_receive_waits_for_send() -> None:
    channel: OutcomeChannel[str] = OutcomeChannel()
    receiver = asyncio.ensure_future(channel.receive())
    await asyncio.sleep(0)

    assert not receiver.done()
    channel.send("token")
    assert await asyncio.wait_for(receiver, timeout=1) == "token"


@pytest.mark.asyncio
async def test_send_into_unread_slot_is_dropped() -> None:
    channel: OutcomeChannel[str] = OutcomeChannel()

    assert channel.send("first") is True
    assert channel.send("second") is False

    assert await channel.receive() == "first"
    channel.close()
    assert await channel.receive() is None


@pytest.mark.asyncio
async def test_slot_is_free_again_after_receive() -> None:
    channel: OutcomeChannel[str] = OutcomeChannel()
    channel.send("first")

    assert await channel.receive() == "first"
    assert channel.send("second") is True
    assert await channel.receive() == "second"


@pytest.mark.asyncio
async def test_send_after_close_is_dropped() -> None:
    channel: OutcomeChannel[str] = OutcomeChannel()
    channel.close()

    assert channel.send("late") is False
    assert await channel.receive() is None


@pytest.mark.asyncio
async def test_item_sent_before_close_is_still_received() -> None:
    channel: OutcomeChannel[str] = OutcomeChannel()
    channel.send("token")
    channel.close()

    assert await channel.receive() == "token"
    assert await channel.receive() is None


@pytest.mark.asyncio
async def test_close_wakes_receiver() -> None:
    channel: OutcomeChannel[str] = OutcomeChannel()
    receiver = asyncio.ensure_future(channel.receive())
    await asyncio.sleep(0)

    channel.close()

    assert await asyncio.wait_for(receiver, timeout=1) is None
    assert channel.closed


@pytest.mark.asyncio
async def test_cancelled_receive_keeps_item() -> None:
    channel: OutcomeChannel[str] = OutcomeChannel()
    receiver = asyncio.ensure_future(channel.receive())
    await asyncio.sleep(0)

    receiver.cancel()
    with pytest.raises(asyncio.CancelledError):
        await receiver
    channel.send("token")

    assert await channel.receive() == "token"


@pytest.mark.asyncio
async def test_receiver_view() -> None:
    channel: OutcomeChannel[str] = OutcomeChannel()
    receiver = channel.receiver()
    channel.send("token")

    assert await receiver.receive() == "token"
    assert not hasattr(receiver, "send")
    channel.close()
    assert receiver.closed
