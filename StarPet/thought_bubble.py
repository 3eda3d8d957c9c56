import pygame


class ThoughtBubble:
    def __init__(self, screen, font, get_pet_pos_func):
        self.screen = screen
        self.font = font
        self.get_pet_pos = get_pet_pos_func
        self.message = ""
        self.color = (255, 255, 255) # White
        self.text_color = (0, 0, 0) # Black
        self.padding = 4
        self.border_radius = 5
        self.max_chars = 28

    def set_message(self, message):
        # Long details are cut so the bubble stays inside a small window
        if len(message) > self.max_chars:
            message = message[:self.max_chars - 1] + "…"
        self.message = message

    def draw(self, lift=30):
        if not self.message:
            return
        pet_x, pet_y = self.get_pet_pos()

        text_surf = self.font.render(self.message, True, self.text_color)
        text_rect = text_surf.get_rect()

        bubble_width = text_rect.width + 2 * self.padding
        bubble_height = text_rect.height + 2 * self.padding

        # Keep the bubble on screen horizontally
        screen_w = self.screen.get_width()
        bubble_x = min(max(0, pet_x - bubble_width // 2), max(0, screen_w - bubble_width))
        bubble_y = max(0, pet_y - bubble_height - lift)

        bubble_rect = pygame.Rect(bubble_x, bubble_y, bubble_width, bubble_height)
        pygame.draw.rect(self.screen, self.color, bubble_rect, border_radius=self.border_radius)
        self.screen.blit(text_surf, (bubble_x + self.padding, bubble_y + self.padding))

        # Tail (a simple triangle)
        tail_top = bubble_y + bubble_height
        tail = [(pet_x - 5, tail_top - 1), (pet_x + 5, tail_top - 1), (pet_x, tail_top + 8)]
        pygame.draw.polygon(self.screen, self.color, tail)
