from __future__ import annotations

from typing import Optional

BLACK = -1
WHITE = 1
EMPTY = 0

BOARD_SIZE = 8

DIRECTIONS = [
    (-1, -1),
    (-1, 0),
    (-1, 1),
    (0, -1),
    (0, 1),
    (1, -1),
    (1, 0),
    (1, 1),
]

COLOR_NAMES = {BLACK: "black", WHITE: "white"}


def opponent(color: int) -> int:
    assert color in [BLACK, WHITE]
    return -color


def color_name(color: int) -> str:
    try:
        return COLOR_NAMES[color]
    except KeyError:
        raise ValueError(f'Unknown color "{color}"')


def parse_color(name: str) -> int:
    for color, color_name_ in COLOR_NAMES.items():
        if name.lower() == color_name_:
            return color
    raise ValueError(f'Unknown color "{name}"')


def on_board(x: int, y: int) -> bool:
    return 0 <= x < BOARD_SIZE and 0 <= y < BOARD_SIZE


class MoveOutcome:
    def __init__(self, accepted: bool, flipped: list[tuple[int, int]]) -> None:
        self.accepted = accepted

        # Stones that changed owner, for presentation.
        self.flipped = flipped

    @classmethod
    def rejected(cls) -> MoveOutcome:
        return MoveOutcome(False, [])

    def __bool__(self) -> bool:
        return self.accepted

    def __repr__(self) -> str:
        return f"MoveOutcome({self.accepted}, {self.flipped})"


class PassResult:
    def __init__(self, passed: bool, turn: int, terminal: bool) -> None:
        self.passed = passed
        self.turn = turn
        self.terminal = terminal

    def __repr__(self) -> str:
        return f"PassResult(passed={self.passed}, turn={self.turn}, terminal={self.terminal})"


class Score:
    def __init__(self, black: int, white: int) -> None:
        self.black = black
        self.white = white

    def winner(self) -> Optional[int]:
        if self.black > self.white:
            return BLACK
        if self.white > self.black:
            return WHITE
        return None

    def is_draw(self) -> bool:
        return self.winner() is None

    def summary(self) -> str:
        message = f"Game Over! Black: {self.black}, White: {self.white}. "

        winner = self.winner()
        if winner == BLACK:
            return message + "Black wins!"
        if winner == WHITE:
            return message + "White wins!"
        return message + "It's a draw!"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Score):
            raise TypeError(f"Cannot compare Score with {type(other)}")

        return (self.black, self.white) == (other.black, other.white)

    def __repr__(self) -> str:
        return f"Score(black={self.black}, white={self.white})"


class Board:
    """
    Board holds the 8x8 grid and the color to move.

    Coordinates are (x, y) with x the column and y the row, both zero-indexed.
    All stone placement and flipping goes through `apply()`.
    """

    def __init__(self) -> None:
        self.grid: list[list[int]] = []
        self.turn = BLACK
        self.reset()

    @classmethod
    def start(cls) -> Board:
        return Board()

    @classmethod
    def from_squares(cls, squares: list[int], turn: int) -> Board:
        assert len(squares) == BOARD_SIZE * BOARD_SIZE
        assert turn in [BLACK, WHITE]

        board = Board()
        for index, square in enumerate(squares):
            if square not in [BLACK, WHITE, EMPTY]:
                raise ValueError(f'Invalid square "{square}" at index {index}')
            board.grid[index // BOARD_SIZE][index % BOARD_SIZE] = square

        board.turn = turn
        return board

    def __repr__(self) -> str:
        return f"Board({self.squares()}, {self.turn})"

    def reset(self) -> None:
        self.grid = [[EMPTY] * BOARD_SIZE for _ in range(BOARD_SIZE)]

        # Indexed as grid[y][x]
        self.grid[3][3] = WHITE
        self.grid[3][4] = BLACK
        self.grid[4][3] = BLACK
        self.grid[4][4] = WHITE

        self.turn = BLACK

    def get_square(self, x: int, y: int) -> int:
        return self.grid[y][x]

    def squares(self) -> list[int]:
        return [square for row in self.grid for square in row]

    def _scan(self, x: int, y: int, dx: int, dy: int, color: int) -> list[tuple[int, int]]:
        # Returns the capturing run starting next to (x, y), or an empty list.
        run: list[tuple[int, int]] = []
        other = opponent(color)

        cx, cy = x + dx, y + dy
        while on_board(cx, cy):
            square = self.grid[cy][cx]

            if square == other:
                run.append((cx, cy))
            elif square == color:
                return run
            else:
                break

            cx += dx
            cy += dy

        return []

    def _captures(self, x: int, y: int, color: int) -> list[tuple[int, int]]:
        if not on_board(x, y) or self.grid[y][x] != EMPTY:
            return []

        captured: list[tuple[int, int]] = []
        for dx, dy in DIRECTIONS:
            captured += self._scan(x, y, dx, dy, color)
        return captured

    def is_valid_move(self, x: int, y: int, color: int) -> bool:
        return len(self._captures(x, y, color)) > 0

    def legal_moves(self, color: int) -> set[tuple[int, int]]:
        return {
            (x, y)
            for y in range(BOARD_SIZE)
            for x in range(BOARD_SIZE)
            if self.is_valid_move(x, y, color)
        }

    def has_moves(self, color: int) -> bool:
        return any(
            self.is_valid_move(x, y, color)
            for y in range(BOARD_SIZE)
            for x in range(BOARD_SIZE)
        )

    def apply(self, x: int, y: int, color: int) -> MoveOutcome:
        assert color in [BLACK, WHITE]

        flipped = self._captures(x, y, color)

        if not flipped:
            return MoveOutcome.rejected()

        self.grid[y][x] = color
        for fx, fy in flipped:
            self.grid[fy][fx] = color

        self.turn = opponent(color)
        return MoveOutcome(True, flipped)

    def advance_if_no_moves(self) -> PassResult:
        if self.has_moves(self.turn):
            return PassResult(False, self.turn, False)

        other = opponent(self.turn)
        if not self.has_moves(other):
            return PassResult(False, self.turn, True)

        self.turn = other
        return PassResult(True, self.turn, False)

    def is_terminal(self) -> bool:
        return not (self.has_moves(BLACK) or self.has_moves(WHITE))

    def count(self, color: int) -> int:
        assert color in [BLACK, WHITE, EMPTY]
        return self.squares().count(color)

    def score(self) -> Score:
        return Score(self.count(BLACK), self.count(WHITE))

    def show(self, color: Optional[int] = None) -> None:
        # Marks legal moves for `color` when given.
        moves = self.legal_moves(color) if color is not None else set()

        print("+-a-b-c-d-e-f-g-h-+")
        for y in range(BOARD_SIZE):
            print("{} ".format(y + 1), end="")

            for x in range(BOARD_SIZE):
                square = self.grid[y][x]

                if square == BLACK:
                    print("○ ", end="")
                elif square == WHITE:
                    print("● ", end="")
                elif (x, y) in moves:
                    print("· ", end="")
                else:
                    print("  ", end="")
            print("|")
        print("+-----------------+")

    @classmethod
    def coords_to_field(cls, x: int, y: int) -> str:
        if not on_board(x, y):
            raise ValueError(f"Invalid coordinates ({x}, {y})")
        return "abcdefgh"[x] + "12345678"[y]

    @classmethod
    def field_to_coords(cls, field: str) -> tuple[int, int]:
        if len(field) != 2:
            raise ValueError(f'Invalid move length "{len(field)}"')

        field = field.lower()

        if not ("a" <= field[0] <= "h" and "1" <= field[1] <= "8"):
            raise ValueError(f'Invalid field "{field}"')

        x = ord(field[0]) - ord("a")
        y = ord(field[1]) - ord("1")
        return x, y

    def as_tuple(self) -> tuple[tuple[int, ...], int]:
        return (tuple(self.squares()), self.turn)

    def __hash__(self) -> int:  # pragma: nocover
        return hash(self.as_tuple())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            raise TypeError(f"Cannot compare Board with {type(other)}")

        return self.as_tuple() == other.as_tuple()
