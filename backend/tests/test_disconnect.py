from helpers import sample_answers


def _room_with(service, *names):
    sids = [f'sid-{i}' for i in range(len(names))]
    room = service.create_room(sids[0], names[0])
    for sid, name in zip(sids[1:], names[1:]):
        service.join_room(sid, room.code, name)
    return room, sids


def test_last_player_leaving_destroys_room(service, registry):
    room, sids = _room_with(service, 'Asha')
    assert service.handle_disconnect(sids[0]) == [room.code]
    assert room.code not in registry
    assert room.closed


def test_unknown_connection_is_noop(service, registry, broadcaster):
    room, _ = _room_with(service, 'Asha')
    broadcaster.clear()
    assert service.handle_disconnect('stranger') == []
    assert room.code in registry
    assert broadcaster.room_events == []


def test_host_leaving_lobby_hands_host_to_next_player(service, broadcaster):
    room, sids = _room_with(service, 'Asha', 'Ravi', 'Meera')
    service.handle_disconnect(sids[0])

    assert room.host_id == sids[1]
    assert room.order == [sids[1], sids[2]]
    assert [p.id for p in room.players] == room.order
    assert broadcaster.events('roomUpdate')[-1]['hostId'] == sids[1]


def test_current_player_leaving_skips_turn(service, broadcaster, scheduler):
    room, sids = _room_with(service, 'Asha', 'Ravi', 'Meera')
    service.start_game(sids[0], room.code)
    old_timer = scheduler.latest
    serial = room.turn_serial

    service.handle_disconnect(sids[0])

    assert 'Player left, skipping turn.' in broadcaster.toasts()
    assert room.turn_serial == serial + 1
    assert room.turn_index == 1
    # order is now [Ravi, Meera]; index 1 resolves to Meera.
    assert room.current_player_id() == sids[2]
    assert broadcaster.events('turnStarted')[-1]['currentPlayerId'] == sids[2]
    assert room.host_id == sids[1]
    assert old_timer.cancelled

    # The abandoned turn's timeout can no longer move the game.
    old_timer.fire()
    assert room.turn_index == 1


def test_other_player_leaving_keeps_turn_running(service, broadcaster, scheduler):
    room, sids = _room_with(service, 'Asha', 'Ravi', 'Meera')
    service.start_game(sids[0], room.code)
    timer = scheduler.latest
    deadline = room.timer_end_ts
    broadcaster.clear()

    service.handle_disconnect(sids[2])

    assert room.turn_index == 0
    assert room.current_player_id() == sids[0]
    assert room.timer_end_ts == deadline
    assert timer.pending
    assert broadcaster.toasts() == []
    assert broadcaster.events('turnStarted') == []
    assert broadcaster.events('roomUpdate')[-1]['order'] == [sids[0], sids[1]]


def test_turn_holder_shift_is_announced(service, broadcaster):
    room, sids = _room_with(service, 'Asha', 'Ravi', 'Meera')
    service.start_game(sids[0], room.code)
    service.submit_answers(sids[0], room.code, sample_answers(room.current_letter))
    assert room.current_player_id() == sids[1]
    letter = room.current_letter
    broadcaster.clear()

    # Removing an earlier player shifts order[turn_index % len].
    service.handle_disconnect(sids[0])

    assert room.current_player_id() == sids[2]
    assert room.current_letter == letter
    assert broadcaster.events('turnStarted')[-1]['currentPlayerId'] == sids[2]


def test_shrinking_roster_ends_game_when_bound_reached(service, broadcaster, scheduler):
    room, sids = _room_with(service, 'Asha', 'Ravi', 'Meera')
    service.start_game(sids[0], room.code, 1)
    scheduler.latest.fire()
    scheduler.latest.fire()
    assert room.turn_index == 2
    assert room.current_player_id() == sids[2]

    # Bound drops from 3 to 2 while Meera still holds turn 2.
    service.handle_disconnect(sids[1])

    assert room.state == 'ended'
    assert 'Game Over!' in broadcaster.toasts()
    assert scheduler.pending() == []


def test_everyone_leaving_mid_game_cancels_timer(service, registry, scheduler):
    room, sids = _room_with(service, 'Asha', 'Ravi')
    service.start_game(sids[0], room.code)
    service.handle_disconnect(sids[1])
    service.handle_disconnect(sids[0])

    assert room.code not in registry
    assert scheduler.pending() == []


def test_disconnect_removes_player_from_every_room(service, registry):
    first, _ = _room_with(service, 'Asha', 'Ravi')
    second = service.create_room('sid-x', 'Host')
    service.join_room('sid-1', second.code, 'Ravi')

    assert sorted(service.handle_disconnect('sid-1')) == sorted([first.code, second.code])
    assert not first.has_player('sid-1')
    assert not second.has_player('sid-1')
    assert first.code in registry and second.code in registry
