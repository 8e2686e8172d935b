from unittest.mock import Mock

import pytest

from ec2_menu.menu import MENU_ACTIONS, MenuController
from ec2_menu.models import MenuAction, OperationResult

TAGS = {"Environment": "Production", "Department": "Finance"}


@pytest.fixture
def service():
    return Mock()


@pytest.fixture
def controller(service):
    return MenuController(service, TAGS)


def test_menu_order_and_labels():
    assert [action.label for action in MENU_ACTIONS] == [
        "Listar Instâncias",
        "Criar Instância",
        "Iniciar Instância",
        "Atualizar Tags da Instância",
        "Visualizar Tags da Instância",
        "Parar Instância",
        "Terminar Instância",
        "Sair",
    ]


def test_only_parameterised_actions_prompt():
    prompting = {action for action in MENU_ACTIONS if action.needs_input}

    assert prompting == {
        MenuAction.LAUNCH_INSTANCE,
        MenuAction.START_INSTANCE,
        MenuAction.UPDATE_TAGS,
        MenuAction.LIST_TAGS,
        MenuAction.STOP_INSTANCE,
        MenuAction.TERMINATE_INSTANCE,
    }
    assert MenuAction.EXIT.is_terminal
    assert not MenuAction.LIST_INSTANCES.is_terminal


class TestResolve:
    @pytest.mark.parametrize(
        ("selection", "expected"),
        [
            ("Criar Instância", MenuAction.LAUNCH_INSTANCE),
            ("Sair", MenuAction.EXIT),
            ("LIST_TAGS", MenuAction.LIST_TAGS),
            (1, MenuAction.LIST_INSTANCES),
            ("8", MenuAction.EXIT),
            (MenuAction.STOP_INSTANCE, MenuAction.STOP_INSTANCE),
        ],
    )
    def test_known_selections(self, selection, expected):
        assert MenuController.resolve(selection) is expected

    @pytest.mark.parametrize("selection", [0, 9, -1, "", "Reiniciar", None, True])
    def test_unknown_selections(self, selection):
        assert MenuController.resolve(selection) is None


class TestDispatch:
    def test_list_needs_no_value(self, controller, service):
        service.list_instances.return_value = OperationResult.success("list_instances", "ok", [])

        result = controller.dispatch(MenuAction.LIST_INSTANCES)

        assert result.ok
        service.list_instances.assert_called_once_with()

    def test_create_sends_the_typed_name_once(self, controller, service):
        controller.dispatch(MenuAction.LAUNCH_INSTANCE, "web-01")

        service.launch_instance.assert_called_once_with("web-01")
        assert len(service.method_calls) == 1

    @pytest.mark.parametrize(
        ("action", "method"),
        [
            (MenuAction.START_INSTANCE, "start_instance"),
            (MenuAction.STOP_INSTANCE, "stop_instance"),
            (MenuAction.TERMINATE_INSTANCE, "terminate_instance"),
            (MenuAction.LIST_TAGS, "list_instance_tags"),
        ],
    )
    def test_instance_actions(self, controller, service, action, method):
        controller.dispatch(action, "i-aaa")

        getattr(service, method).assert_called_once_with("i-aaa")

    def test_update_tags_uses_configured_tags(self, controller, service):
        controller.dispatch(MenuAction.UPDATE_TAGS, "i-aaa")

        service.update_instance_tags.assert_called_once_with("i-aaa", TAGS)

    def test_empty_value_is_sent_as_typed(self, controller, service):
        controller.dispatch(MenuAction.START_INSTANCE, "")

        service.start_instance.assert_called_once_with("")

    @pytest.mark.parametrize("action", [action for action in MENU_ACTIONS if action.needs_input])
    def test_refuses_without_answer(self, controller, service, action):
        with pytest.raises(ValueError):
            controller.dispatch(action)

        assert service.method_calls == []

    def test_exit_has_no_operation(self, controller, service):
        with pytest.raises(ValueError):
            controller.dispatch(MenuAction.EXIT)

        assert service.method_calls == []
