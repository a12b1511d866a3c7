"""Window that shows the frame buffer, paced to 60 frames per second."""

from __future__ import annotations

import time

import pygame

from dmgemu.ppu import PPU, SCREEN_HEIGHT, SCREEN_WIDTH

FRAME_TIME_NS = 1_000_000_000 // 60
WINDOW_SCALE = 3
WINDOW_TITLE = "DMG-emu"


class Renderer:
    """Presents the PPU's frame buffer in a resizable window."""

    def __init__(self, ppu: PPU) -> None:
        self.ppu = ppu
        pygame.display.init()
        pygame.display.set_caption(WINDOW_TITLE)
        self.window = pygame.display.set_mode(
            (SCREEN_WIDTH * WINDOW_SCALE, SCREEN_HEIGHT * WINDOW_SCALE),
            pygame.RESIZABLE,
        )
        self.time_point = time.monotonic_ns()

    def __enter__(self) -> Renderer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _wait_for_frame(self) -> None:
        self.time_point += FRAME_TIME_NS
        delay = self.time_point - time.monotonic_ns()
        if delay > 0:
            time.sleep(delay / 1_000_000_000)

    def render(self) -> None:
        """Wait for the next frame slot and draw the frame buffer."""
        self._wait_for_frame()
        frame = pygame.image.frombuffer(
            bytes(self.ppu.frame_buffer), (SCREEN_WIDTH, SCREEN_HEIGHT), "RGBA"
        )
        window = pygame.display.get_surface()
        width, height = window.get_size()
        scale = min(width / SCREEN_WIDTH, height / SCREEN_HEIGHT)
        size = (round(SCREEN_WIDTH * scale), round(SCREEN_HEIGHT * scale))
        offset = ((width - size[0]) // 2, (height - size[1]) // 2)
        window.fill((0, 0, 0))
        window.blit(pygame.transform.scale(frame, size), offset)
        pygame.display.flip()

    def close(self) -> None:
        """Close the window."""
        pygame.quit()