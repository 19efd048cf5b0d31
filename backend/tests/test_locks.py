import threading

from app.services.locks import ClassSectionLockRegistry


def test_same_class_section_is_serialized():
    registry = ClassSectionLockRegistry()
    events = []
    entered = threading.Event()

    def second_writer():
        entered.set()
        with registry.hold("six-a"):
            events.append("second")

    with registry.hold("six-a"):
        worker = threading.Thread(target=second_writer)
        worker.start()
        entered.wait(timeout=1)
        events.append("first")
    worker.join(timeout=1)

    assert events == ["first", "second"]


def test_different_class_sections_do_not_block():
    registry = ClassSectionLockRegistry()
    with registry.hold("six-a"):
        with registry.hold("seven-b"):
            pass
    registry.clear()
