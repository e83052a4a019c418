from gunyu.trace import get_caller_stack, get_caller_stack_frame, get_stack_string


def test_get_caller_stack():
    sf = get_caller_stack(1, 3)
    assert len(sf.frames) == 2
    assert sf.frames[0].func_name.endswith("test_get_caller_stack")
    assert "test_get_caller_stack" in str(sf)
    assert sf.string_one_line().startswith("[")
    assert "test_get_caller_stack" in sf.string_one_line()


def test_get_caller_stack_by_size():
    assert "test_get_caller_stack_by_size" in get_stack_string(0)


def test_get_caller_frame():
    fn = "test_get_caller_frame"
    frame = get_caller_stack_frame(0)
    assert frame.func_name.endswith(fn)
    assert fn in str(frame)