"""One script builder per Things operation.

Builders take only static flags. Everything the caller supplied is read
from `params` inside the script.
"""

from __future__ import annotations

from infrastructure.jxa.script import ScriptBuilder

INBOX = "TMInboxListSource"
TODAY = "TMTodayListSource"
UPCOMING = "TMUpcomingListSource"
ANYTIME = "TMAnytimeListSource"
SOMEDAY = "TMSomedayListSource"
LOGBOOK = "TMLogbookListSource"
TRASH = "TMTrashListSource"

_IS_THINGS_RUNNING = r"""
    return JSON.stringify({ success: true, data: things.running() });
"""

_CREATE_TODO = r"""
    const props = { name: params.title };
    if (params.notes) {
      props.notes = params.notes;
    }
    const todo = things.ToDo(props);
    things.toDos.push(todo);
    if (params.deadline) {
      setDeadline(todo, params.deadline);
    }
    scheduleItem(todo, params.when);
    if (params.tags && params.tags.length > 0) {
      applyTags(todo, params.tags);
    }
    assignLocation(todo, true);
    if (params.heading) {
      warnings.push('headings are not scriptable; ignored heading ' + params.heading);
    }
    appendChecklist(todo, params.checklist_items);
    return ok({ id: todo.id(), name: todo.name() });
"""

_CREATE_PROJECT = r"""
    const props = { name: params.title };
    if (params.notes) {
      props.notes = params.notes;
    }
    const project = things.Project(props);
    things.projects.push(project);
    if (params.deadline) {
      setDeadline(project, params.deadline);
    }
    scheduleItem(project, params.when);
    if (params.tags && params.tags.length > 0) {
      applyTags(project, params.tags);
    }
    assignLocation(project, false);
    (params.todos || []).forEach(title => {
      project.toDos.push(things.ToDo({ name: title }));
    });
    return ok({ id: project.id(), name: project.name() });
"""

_TODO_COLLECTION = r"""
    const collection = things.toDos;
"""

_PROJECT_COLLECTION = r"""
    const collection = things.projects;
"""

_UPDATE_ITEM = r"""
    const item = findById(collection, params.id);
    if (!item) {
      return notFound($label);
    }
    if (params.title !== undefined) {
      item.name = params.title;
    }
    if (params.notes !== undefined) {
      item.notes = params.notes;
    }
    if (params.deadline !== undefined) {
      setDeadline(item, params.deadline);
    }
    if (params.when !== undefined) {
      scheduleItem(item, params.when);
    }
    if (params.tags !== undefined) {
      applyTags(item, params.tags);
    }
    assignLocation(item, $allow_project);
    if (params.checklist_items !== undefined) {
      appendChecklist(item, params.checklist_items);
    }
    if (params.completed !== undefined) {
      item.status = params.completed ? 'completed' : 'open';
    }
    if (params.canceled !== undefined) {
      item.status = params.canceled ? 'canceled' : 'open';
    }
    return ok(mapSummary(item, $kind));
"""

_GET_LIST = r"""
    const todos = listToDos($source);
    return ok(todos.map(todo => mapTodo(todo, $with_containers)));
"""

_GET_LOGBOOK = r"""
    const cutoff = new Date();
    cutoff.setDate(cutoff.getDate() - params.days_back);
    const done = listToDos($source).filter(todo => {
      const completed = prop(todo, 'completionDate');
      return completed && completed >= cutoff;
    });
    return ok(done.slice(0, params.limit).map(todo => mapTodo(todo, true)));
"""

_GET_TODOS = r"""
    let todos;
    if (params.project_uuid) {
      const project = findById(things.projects, params.project_uuid);
      todos = project ? project.toDos() : [];
    } else {
      todos = things.toDos();
    }
    const matching = todos.filter(todo => prop(todo, 'status') === params.status);
    return ok(matching.map(todo => mapTodo(todo, true)));
"""

_GET_PROJECTS = r"""
    const projects = things.projects().filter(project => prop(project, 'status') === 'open');
    return ok(projects.map(project => {
      const data = mapProject(project);
      if ($include_items) {
        data.todos = countOf(project, 'toDos');
      }
      return data;
    }));
"""

_GET_AREAS = r"""
    const areas = [];
    things.areas().forEach(area => {
      const data = mapArea(area);
      if (data.id === null) {
        return;
      }
      if ($include_items) {
        data.projects = countOf(area, 'projects');
        data.todos = countOf(area, 'toDos');
      }
      areas.push(data);
    });
    return ok(areas);
"""

_GET_TAGS = r"""
    const names = things.tags().map(tag => prop(tag, 'name')).filter(name => name !== null);
    return ok(names);
"""

_GET_TAGGED_ITEMS = r"""
    const hasTag = item => tagList(item).indexOf(params.tag_title) !== -1;
    const todos = things.toDos().filter(hasTag).map(todo => mapSummary(todo, 'todo'));
    const projects = things.projects().filter(hasTag).map(project => mapSummary(project, 'project'));
    return ok(todos.concat(projects));
"""

_SEARCH_TODOS = r"""
    const query = params.query.toLowerCase();
    const matching = things.toDos().filter(todo => textMatches(todo, query, true));
    return ok(matching.map(todo => mapTodo(todo, true)));
"""

_SEARCH_ADVANCED = r"""
    const query = (params.query || '').toLowerCase();
    const wantedTags = params.tags || [];
    const statuses = [];
    if (params.completed) {
      statuses.push('completed');
    }
    if (params.canceled) {
      statuses.push('canceled');
    }
    if (statuses.length === 0) {
      statuses.push('open');
    }
    let candidates = things.toDos().filter(todo => statuses.indexOf(prop(todo, 'status')) !== -1);
    if (params.trashed) {
      candidates = candidates.concat(listToDos($trash));
    }
    if (query) {
      candidates = candidates.filter(todo => textMatches(todo, query, true));
    }
    if (wantedTags.length > 0) {
      candidates = candidates.filter(todo => {
        const own = tagList(todo);
        return wantedTags.some(tag => own.indexOf(tag) !== -1);
      });
    }
    return ok(candidates.map(todo => mapTodo(todo, true)));
"""

_GET_RECENT = r"""
    const cutoff = new Date();
    cutoff.setDate(cutoff.getDate() - params.days);
    const recent = things.toDos().filter(todo => {
      const modified = prop(todo, 'modificationDate');
      return modified && modified >= cutoff;
    });
    recent.sort((a, b) => prop(b, 'modificationDate') - prop(a, 'modificationDate'));
    return ok(recent.map(todo => mapTodo(todo, true)));
"""

_SHOW_ITEM = r"""
    const project = findById(things.projects, params.id);
    if (project) {
      const data = mapProject(project);
      data.type = 'project';
      data.todos = countOf(project, 'toDos');
      return ok(data);
    }
    const todo = findById(things.toDos, params.id);
    if (todo) {
      const data = mapTodo(todo, true);
      data.type = 'todo';
      return ok(data);
    }
    const area = findById(things.areas, params.id);
    if (area) {
      const data = mapArea(area);
      data.type = 'area';
      data.projects = countOf(area, 'projects');
      data.todos = countOf(area, 'toDos');
      return ok(data);
    }
    return notFound('Item');
"""

_SEARCH_ITEMS = r"""
    const query = params.query.toLowerCase();
    const results = [];
    things.toDos().forEach(todo => {
      if (textMatches(todo, query, true)) {
        results.push(mapSummary(todo, 'todo'));
      }
    });
    things.projects().forEach(project => {
      if (textMatches(project, query, true)) {
        results.push(mapSummary(project, 'project'));
      }
    });
    things.areas().forEach(area => {
      if (textMatches(area, query, false)) {
        results.push(mapSummary(area, 'area'));
      }
    });
    return ok(results);
"""


def is_things_running() -> str:
    return ScriptBuilder(include_prelude=False).add(_IS_THINGS_RUNNING).build()


def create_todo() -> str:
    return ScriptBuilder().add(_CREATE_TODO).build()


def create_project() -> str:
    return ScriptBuilder().add(_CREATE_PROJECT).build()


def update_todo() -> str:
    return ScriptBuilder().add(_TODO_COLLECTION).add(_UPDATE_ITEM, label="To-do", kind="todo", allow_project=True).build()


def update_project() -> str:
    return ScriptBuilder().add(_PROJECT_COLLECTION).add(_UPDATE_ITEM, label="Project", kind="project", allow_project=False).build()


def get_list(source: str, *, with_containers: bool = True) -> str:
    return ScriptBuilder().add(_GET_LIST, source=source, with_containers=with_containers).build()


def get_logbook() -> str:
    return ScriptBuilder().add(_GET_LOGBOOK, source=LOGBOOK).build()


def get_trash() -> str:
    return get_list(TRASH)


def get_todos() -> str:
    return ScriptBuilder().add(_GET_TODOS).build()


def get_projects(include_items: bool = False) -> str:
    return ScriptBuilder().add(_GET_PROJECTS, include_items=include_items).build()


def get_areas(include_items: bool = False) -> str:
    return ScriptBuilder().add(_GET_AREAS, include_items=include_items).build()


def get_tags() -> str:
    return ScriptBuilder().add(_GET_TAGS).build()


def get_tagged_items() -> str:
    return ScriptBuilder().add(_GET_TAGGED_ITEMS).build()


def search_todos() -> str:
    return ScriptBuilder().add(_SEARCH_TODOS).build()


def search_advanced() -> str:
    return ScriptBuilder().add(_SEARCH_ADVANCED, trash=TRASH).build()


def get_recent() -> str:
    return ScriptBuilder().add(_GET_RECENT).build()


def show_item() -> str:
    return ScriptBuilder().add(_SHOW_ITEM).build()


def search_items() -> str:
    return ScriptBuilder().add(_SEARCH_ITEMS).build()
