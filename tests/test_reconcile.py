from datetime import timedelta

from conftest import make_outage

from coupure.services.reconcile import reconcile


def test_matching_ids_take_the_remote_version(clock):
    local = [make_outage("a", at=clock(), confirmations=2, synced=False)]
    remote = [make_outage("a", at=clock(), confirmations=7, resolved=True)]

    merged = reconcile(local, remote)

    assert len(merged) == 1
    assert merged[0].confirmations == 7
    assert merged[0].resolved is True
    assert merged[0].synced is True


def test_remote_only_records_are_appended_as_synced(clock):
    local = [make_outage("a", at=clock())]
    remote = [make_outage("b", at=clock(), synced=False)]

    merged = reconcile(local, remote)

    assert [r.id for r in merged] == ["a", "b"]
    assert merged[1].synced is True


def test_local_only_records_are_kept_untouched(clock):
    offline = make_outage("1741611600000abcdefghi", at=clock(), synced=False, confirmations=3)

    merged = reconcile([offline], [])

    assert merged == [offline]


def test_local_order_is_preserved(clock):
    local = [make_outage(i, at=clock() - timedelta(hours=n)) for n, i in enumerate("cba")]
    remote = [make_outage("a", at=clock()), make_outage("c", at=clock())]

    assert [r.id for r in reconcile(local, remote)] == ["c", "b", "a"]


def test_duplicate_remote_ids_are_appended_once(clock):
    remote = [make_outage("x", at=clock()), make_outage("x", at=clock())]

    assert [r.id for r in reconcile([], remote)] == ["x"]


def test_second_pass_is_identical_to_the_first(clock):
    local = [
        make_outage("tmp1", at=clock(), synced=False),
        make_outage("a", at=clock(), confirmations=1),
    ]
    remote = [make_outage("a", at=clock(), confirmations=4), make_outage("b", at=clock())]

    once = reconcile(local, remote)
    twice = reconcile(once, remote)

    assert twice == once


def test_lost_create_response_duplicates_the_report(clock):
    # le serveur a créé le document mais la réponse n'est jamais arrivée :
    # la copie locale garde son id temporaire, la copie distante arrive en double
    local = [make_outage("1741611600000k3j9x0a1b", at=clock(), synced=False)]
    remote = [make_outage("65f1c0de0012ab", at=clock())]

    merged = reconcile(local, remote)

    assert [r.id for r in merged] == ["1741611600000k3j9x0a1b", "65f1c0de0012ab"]
    assert merged[0].synced is False
    assert merged[1].synced is True
