"""Shared pytest fixtures for gmx-mirror tests."""

from pathlib import Path

import pytest

from gmx_mirror.config import Config

ENEMY_GMX = """\
<!--This Document is generated by GameMaker, if you edit it by hand then you do so at your own risk!-->
<object>
  <spriteName>spr_enemy</spriteName>
  <solid>0</solid>
  <visible>-1</visible>
  <depth>-10</depth>
  <persistent>0</persistent>
  <parentName>obj_actor</parentName>
  <maskName>&lt;undefined&gt;</maskName>
  <events>
    <event eventtype="0" enumb="0">
      <action>
        <libid>1</libid>
        <id>603</id>
        <kind>7</kind>
        <userelative>0</userelative>
        <isquestion>0</isquestion>
        <useapplyto>-1</useapplyto>
        <exetype>2</exetype>
        <functionname></functionname>
        <codestring></codestring>
        <whoName>self</whoName>
        <relative>0</relative>
        <isnot>0</isnot>
        <arguments>
          <argument>
            <kind>1</kind>
            <string>hp = 3;
speed = 2;</string>
          </argument>
        </arguments>
      </action>
    </event>
    <event eventtype="2" enumb="1">
      <action>
        <libid>1</libid>
        <id>604</id>
        <kind>0</kind>
        <userelative>0</userelative>
        <isquestion>0</isquestion>
        <useapplyto>0</useapplyto>
        <exetype>1</exetype>
        <functionname>action_inherited</functionname>
        <codestring></codestring>
        <whoName>self</whoName>
        <relative>0</relative>
        <isnot>0</isnot>
      </action>
    </event>
    <event eventtype="4" ename="obj_wall">
      <action>
        <libid>1</libid>
        <id>113</id>
        <kind>0</kind>
        <userelative>0</userelative>
        <isquestion>0</isquestion>
        <useapplyto>-1</useapplyto>
        <exetype>1</exetype>
        <functionname>action_bounce</functionname>
        <codestring></codestring>
        <whoName>self</whoName>
        <relative>0</relative>
        <isnot>0</isnot>
        <arguments>
          <argument>
            <kind>3</kind>
            <string>0</string>
          </argument>
          <argument>
            <kind>3</kind>
            <string>1</string>
          </argument>
        </arguments>
      </action>
    </event>
  </events>
  <PhysicsObject>0</PhysicsObject>
  <PhysicsObjectSensor>0</PhysicsObjectSensor>
  <PhysicsObjectShape>0</PhysicsObjectShape>
  <PhysicsObjectDensity>0.5</PhysicsObjectDensity>
  <PhysicsObjectRestitution>0.1</PhysicsObjectRestitution>
  <PhysicsObjectGroup>0</PhysicsObjectGroup>
  <PhysicsObjectLinearDamping>0.1</PhysicsObjectLinearDamping>
  <PhysicsObjectAngularDamping>0.1</PhysicsObjectAngularDamping>
  <PhysicsObjectFriction>0.2</PhysicsObjectFriction>
  <PhysicsObjectAwake>-1</PhysicsObjectAwake>
  <PhysicsObjectKinematic>0</PhysicsObjectKinematic>
  <PhysicsShapePoints>
    <point>0,0</point>
    <point>16,16</point>
  </PhysicsShapePoints>
</object>
"""

PROJECT_GMX = """\
<!--This Document is generated by GameMaker, if you edit it by hand then you do so at your own risk!-->
<assets>
  <Configs name="configs">
    <Config>Configs\\Default</Config>
  </Configs>
  <scripts name="scripts">
    <script>scripts\\scr_move.gml</script>
  </scripts>
  <objects name="objects">
    <objects name="enemies">
      <object>objects\\obj_enemy</object>
    </objects>
    <object>objects\\obj_wall</object>
  </objects>
  <rooms name="rooms">
    <room>rooms\\room0</room>
  </rooms>
</assets>
"""

SCRIPT_GML = "/// scr_move(dx, dy)\r\nx += argument0;\r\ny += argument1;\r\n"


@pytest.fixture
def enemy_bytes() -> bytes:
    return ENEMY_GMX.encode("utf-8")


@pytest.fixture
def project_bytes() -> bytes:
    return PROJECT_GMX.encode("utf-8")


@pytest.fixture
def gmx_project(tmp_path: Path) -> Path:
    """A small GameMaker project: two objects, one script, a manifest."""
    project = tmp_path / "example.gmx"
    (project / "objects").mkdir(parents=True)
    (project / "scripts").mkdir()
    (project / "objects" / "obj_enemy.object.gmx").write_text(
        ENEMY_GMX, encoding="utf-8"
    )
    (project / "objects" / "obj_wall.object.gmx").write_text(
        ENEMY_GMX.replace("spr_enemy", "spr_wall"), encoding="utf-8"
    )
    (project / "scripts" / "scr_move.gml").write_bytes(SCRIPT_GML.encode("utf-8"))
    (project / "example.project.gmx").write_text(PROJECT_GMX, encoding="utf-8")
    return project


@pytest.fixture
def gmx_config(gmx_project: Path) -> Config:
    """A Config for ``gmx_project`` with the mirror next to it."""
    return Config(
        project_dir=gmx_project,
        mirror_dir=gmx_project.parent / "NiceObjects",
        manifest_path=gmx_project / "example.project.gmx",
    )
