class ShapeError(ValueError):
    '''Raised when a parameter shape can not be used, e.g. fan in of a tensor with fewer than 2 dimensions'''
