from __future__ import annotations


def sin(self):
    return self._wrap(self.sin_())


def cos(self):
    return self._wrap(self.cos_())


def tanh(self):
    return self._wrap(self.tanh_())
