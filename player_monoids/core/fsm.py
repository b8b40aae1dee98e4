from __future__ import annotations

from statemachine import State, StateMachine

MAIN_BRANCH = "main"


class ActiveBranchFSM(StateMachine):
    """Tracks which branch of one entity is active.

    Two states are enough to guard the lifecycle rules:
    - `main`: the distinguished branch is active.
    - `side`: some other named branch is active; `active_branch` holds its name.

    The FSM is the only writer of `active_branch`.
    """

    main = State("Main", value="main", initial=True)
    side = State("Side", value="side")

    switch_to_side = main.to(side) | side.to.itself()
    switch_to_main = side.to(main) | main.to.itself()

    def __init__(self, active_branch: str = MAIN_BRANCH):
        super().__init__(start_value="main" if active_branch == MAIN_BRANCH else "side")
        self.active_branch = active_branch

    def on_switch_to_side(self, branch_name: str) -> None:
        self.active_branch = branch_name

    def on_switch_to_main(self) -> None:
        self.active_branch = MAIN_BRANCH

    def activate(self, branch_name: str) -> None:
        if branch_name == MAIN_BRANCH:
            self.switch_to_main()
        else:
            self.switch_to_side(branch_name=branch_name)

    @property
    def is_on_main(self) -> bool:
        return self.current_state == self.main
