from aiogram.fsm.state import State, StatesGroup


class DraftStates(StatesGroup):
    choosing_type = State()
    entering_text = State()
    choosing_duration = State()
    entering_custom_duration = State()
    entering_reflection = State()


class ResolveStates(StatesGroup):
    final_note = State()
