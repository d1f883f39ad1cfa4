from feed.models import Comment, Post, Reply
from .ledger import AlertType, Ledger

SUBJECT_MODELS = {
    "comment": Comment,
    "reply": Reply,
}


def _subject_ref(record):
    kind, _sep, pk = record.subject_key.partition(":")
    if kind in SUBJECT_MODELS and pk.isdigit():
        return kind, int(pk)
    return None


def prune_orphans(ledger: Ledger) -> int:
    """Drop records whose source post, or subject comment or reply, no longer exists."""
    post_ids = {record.source.post_id for record in ledger if record.source.post_id is not None}
    existing_posts = set(Post.objects.filter(pk__in=post_ids).values_list("pk", flat=True))

    wanted = {kind: set() for kind in SUBJECT_MODELS}
    for record in ledger:
        ref = _subject_ref(record)
        if ref is not None:
            wanted[ref[0]].add(ref[1])
    existing_subjects = {
        kind: set(SUBJECT_MODELS[kind].objects.filter(pk__in=ids).values_list("pk", flat=True)) if ids else set()
        for kind, ids in wanted.items()
    }

    def keep(record):
        if record.alert_type == AlertType.FRIEND_REQUEST.value:
            return True
        if record.source.post_id not in existing_posts:
            return False
        ref = _subject_ref(record)
        return ref is None or ref[1] in existing_subjects[ref[0]]

    return ledger.prune(keep)
