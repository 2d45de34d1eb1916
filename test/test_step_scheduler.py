"""
Unit tests for mise.application.step_scheduler.
"""

from datetime import datetime

from mise.application.equipment_ledger import EquipmentLedger
from mise.application.step_scheduler import schedule_recipe
from mise.domain.entities import Equipment

OVEN = Equipment(id="oven-1", name="Oven", type="oven")
MIXER = Equipment(id="mixer-1", name="Mixer", type="mixer")


def at(hh, mm):
    return datetime(2030, 1, 1, hh, mm)


class TestScheduleRecipe:
    def test_steps_chain_backwards_from_target(self, make_recipe):
        r = make_recipe("Roast", [("prep", 10, []), ("cook", 20, [OVEN]), ("rest", 5, [])])
        tasks = schedule_recipe(r, at(18, 0), EquipmentLedger(["oven-1"]))

        assert [t.step_id for t in tasks] == [s.id for s in r.steps]
        assert [(t.start_time, t.end_time) for t in tasks] == [
            (at(17, 25), at(17, 35)),
            (at(17, 35), at(17, 55)),
            (at(17, 55), at(18, 0)),
        ]

    def test_equipment_is_reserved(self, make_recipe):
        ledger = EquipmentLedger(["oven-1"])
        r = make_recipe("Roast", [("cook", 20, [OVEN])])
        schedule_recipe(r, at(18, 0), ledger)
        assert ledger.bookings("oven-1") == [(at(17, 40), at(18, 0))]

    def test_busy_unit_pulls_step_and_everything_before_it(self, make_recipe):
        ledger = EquipmentLedger(["oven-1"])
        ledger.reserve("oven-1", at(17, 40), at(18, 0))
        r = make_recipe("Gratin", [("prep", 10, []), ("cook", 20, [OVEN])])
        prep, cook = schedule_recipe(r, at(18, 0), ledger)
        assert (cook.start_time, cook.end_time) == (at(17, 20), at(17, 40))
        assert (prep.start_time, prep.end_time) == (at(17, 10), at(17, 20))

    def test_slot_must_be_free_on_every_unit(self, make_recipe):
        ledger = EquipmentLedger(["oven-1", "mixer-1"])
        ledger.reserve("oven-1", at(17, 20), at(17, 40))
        ledger.reserve("mixer-1", at(17, 50), at(18, 0))
        r = make_recipe("Souffle", [("cook", 20, [OVEN, MIXER])])

        (task,) = schedule_recipe(r, at(18, 0), ledger)

        assert (task.start_time, task.end_time) == (at(17, 0), at(17, 20))
        assert not any(
            s < task.end_time and task.start_time < e
            for eq in ("oven-1", "mixer-1")
            for s, e in ledger.bookings(eq)
            if (s, e) != (task.start_time, task.end_time)
        )

    def test_repeated_equipment_reserved_once(self, make_recipe):
        ledger = EquipmentLedger(["oven-1"])
        r = make_recipe("Roast", [("cook", 20, [OVEN, OVEN])])
        schedule_recipe(r, at(18, 0), ledger)
        assert len(ledger.bookings("oven-1")) == 1

    def test_dependencies_point_at_previous_step(self, make_recipe, sequential_ids):
        r = make_recipe("Roast", [("prep", 10, []), ("cook", 20, []), ("serve", 5, [])])
        tasks = schedule_recipe(r, at(18, 0), EquipmentLedger([]), task_id_factory=sequential_ids)
        assert tasks[0].dependencies == ()
        assert tasks[1].dependencies == (tasks[0].id,)
        assert tasks[2].dependencies == (tasks[1].id,)

    def test_tasks_carry_recipe_fields(self, make_recipe):
        r = make_recipe("Roast", [("cook", 20, [OVEN])], priority="high")
        (task,) = schedule_recipe(r, at(18, 0), EquipmentLedger(["oven-1"]))
        assert task.recipe_id == r.id
        assert task.recipe_name == "Roast"
        assert task.priority == "high"
        assert task.status == "pending"
        assert task.duration == 20
        assert task.equipment_ids == ["oven-1"]
